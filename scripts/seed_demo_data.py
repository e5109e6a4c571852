from sqlalchemy import select

from styledecor.infrastructure.db.models import Decorator, User
from styledecor.infrastructure.db.session import (
    Base,
    create_db_engine,
    create_session_factory,
    session_scope,
)


def seed_users(db) -> None:
    user_defs = [
        {"email": "admin@styledecor.dev", "name": "StyleDecor Admin", "role": "admin"},
        {"email": "customer@styledecor.dev", "name": "Nadia Rahman", "role": "user"},
        {"email": "rafi@styledecor.dev", "name": "Rafi Decor Studio", "role": "decorator"},
        {"email": "mitu@styledecor.dev", "name": "Mitu Floral Works", "role": "decorator"},
    ]

    for item in user_defs:
        existing = db.execute(
            select(User).where(User.email == item["email"])
        ).scalar_one_or_none()
        if existing:
            existing.name = item["name"]
            existing.role = item["role"]
            continue

        db.add(User(email=item["email"], name=item["name"], role=item["role"]))


def seed_decorators(db) -> None:
    decorator_defs = [
        {
            "name": "Rafi Decor Studio",
            "email": "rafi@styledecor.dev",
            "district": "Dhaka",
            "specialities": "wedding, stage",
        },
        {
            "name": "Mitu Floral Works",
            "email": "mitu@styledecor.dev",
            "district": "Chattogram",
            "specialities": "birthday, floral",
        },
    ]

    for item in decorator_defs:
        existing = db.execute(
            select(Decorator).where(Decorator.email == item["email"])
        ).scalar_one_or_none()
        decorator = existing or Decorator(email=item["email"])
        decorator.name = item["name"]
        decorator.district = item["district"]
        decorator.specialities = item["specialities"]
        decorator.status = "approved"
        decorator.work_status = "available"
        if not existing:
            db.add(decorator)


def main() -> None:
    engine = create_db_engine()
    Base.metadata.create_all(bind=engine)
    with session_scope(create_session_factory(engine)) as db:
        seed_users(db)
        seed_decorators(db)
    print("Seed complete: admin, customer and two approved decorators added.")


if __name__ == "__main__":
    main()
