# styledecor/infrastructure/repositories/user_repository.py

from sqlalchemy import select
from sqlalchemy.orm import Session

from styledecor.infrastructure.db.models import Decorator, User


class UserRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def create_user(
        self,
        email: str,
        name: str | None = None,
        photo_url: str | None = None,
        role: str = "user",
    ) -> User:
        user = User(email=email, name=name, photo_url=photo_url, role=role)
        self.db.add(user)
        return user


class DecoratorRepository:

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, decorator_id: str) -> Decorator | None:
        stmt = select(Decorator).where(Decorator.id == decorator_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_email(self, email: str) -> Decorator | None:
        stmt = select(Decorator).where(Decorator.email == email)
        return self.db.execute(stmt).scalar_one_or_none()

    def list_available(self) -> list[Decorator]:
        stmt = (
            select(Decorator)
            .where(Decorator.status == "approved")
            .where(Decorator.work_status == "available")
            .order_by(Decorator.name)
        )
        return list(self.db.execute(stmt).scalars().all())

    def create_application(
        self,
        name: str,
        email: str,
        phone: str | None = None,
        district: str | None = None,
        specialities: str | None = None,
    ) -> Decorator:
        decorator = Decorator(
            name=name,
            email=email,
            phone=phone,
            district=district,
            specialities=specialities,
            status="pending",
            work_status="unavailable",
        )
        self.db.add(decorator)
        return decorator
