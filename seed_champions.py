"""
Seed champions and demo users for local development

Creates regions, champion roles, a handful of champions and two demo users.
Safe to run repeatedly: rows that already exist (by name) are left alone.

Run with: python seed_champions.py
"""

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from database_adapter import Base, Champion, Region, Role, User

# Load environment variables
load_dotenv('.env')

DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./champion_reviews.db')

engine = create_engine(DATABASE_URL.replace('sqlite+aiosqlite', 'sqlite'), echo=False)
SessionLocal = sessionmaker(bind=engine)

Base.metadata.create_all(bind=engine)

regions = ["Ionia", "Demacia", "Noxus", "Freljord", "Piltover"]
roles = ["Top", "Jungle", "Mid", "Bottom", "Support"]

champions = [
    {"name": "Ahri", "title": "the Nine-Tailed Fox", "region": "Ionia", "role": "Mid"},
    {"name": "Garen", "title": "The Might of Demacia", "region": "Demacia", "role": "Top"},
    {"name": "Darius", "title": "the Hand of Noxus", "region": "Noxus", "role": "Top"},
    {"name": "Ashe", "title": "the Frost Archer", "region": "Freljord", "role": "Bottom"},
    {"name": "Jayce", "title": "the Defender of Tomorrow", "region": "Piltover", "role": "Top"},
    {"name": "Lee Sin", "title": "the Blind Monk", "region": "Ionia", "role": "Jungle"},
]

demo_users = [
    {"username": "summoner_one", "email": "one@example.com", "role": "user"},
    {"username": "summoner_admin", "email": "admin@example.com", "role": "admin"},
]


def _get_or_create(session, model, name, **fields):
    obj = session.query(model).filter(getattr(model, "username" if model is User else "name") == name).first()
    if obj is not None:
        return obj, False
    obj = model(**fields)
    session.add(obj)
    session.flush()
    return obj, True


def seed():
    session = SessionLocal()
    try:
        region_ids = {}
        for name in regions:
            region, _ = _get_or_create(session, Region, name, name=name)
            region_ids[name] = region.id

        role_ids = {}
        for name in roles:
            role, _ = _get_or_create(session, Role, name, name=name)
            role_ids[name] = role.id

        for data in champions:
            _, created = _get_or_create(
                session, Champion, data["name"],
                name=data["name"],
                title=data["title"],
                region_id=region_ids[data["region"]],
                role_id=role_ids[data["role"]],
            )
            print(f"{'✓ Created' if created else '• Exists '} champion {data['name']}")

        for data in demo_users:
            _, created = _get_or_create(session, User, data["username"], **data)
            print(f"{'✓ Created' if created else '• Exists '} user {data['username']} ({data['role']})")

        session.commit()
    finally:
        session.close()


if __name__ == "__main__":
    seed()
    print("\nDone. Create a token with: python create_token.py summoner_one")
