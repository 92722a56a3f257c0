"""Persistence helpers for member profiles."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from matrisync.domain.entities import AuthUser
from matrisync.infrastructure.models import ProfileModel


class ProfileRepository:
    """Look up and register member profiles."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, profile_id: str) -> ProfileModel | None:
        return self.session.get(ProfileModel, profile_id)

    def get_by_email(self, email: str) -> ProfileModel | None:
        statement = select(ProfileModel).where(ProfileModel.email == email)
        return self.session.execute(statement).scalar_one_or_none()

    def get_auth_user(self, profile_id: str) -> AuthUser | None:
        model = self.get(profile_id)
        if model is None:
            return None
        return AuthUser(id=model.id, email=model.email)

    def create(
        self,
        *,
        email: str,
        name: str | None = None,
        full_name: str | None = None,
        images: list[str] | None = None,
    ) -> ProfileModel:
        """Persist a new profile and return it."""

        if self.get_by_email(email) is not None:
            raise ValueError(f"A profile with email {email} already exists")
        model = ProfileModel(email=email, name=name, full_name=full_name, images=images or [])
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return model


__all__ = ["ProfileRepository"]
