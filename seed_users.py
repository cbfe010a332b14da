#!/usr/bin/env python
from surveyhub.app.core.config import settings
from surveyhub.app.services.links import owner_token
from surveyhub.db import Base
from surveyhub.db.models import User
from surveyhub.db.session import build_engine, build_sessionmaker
from surveyhub.db.store import SurveyStore


def get_or_create(store, email, **kwargs):
    obj = store.db.query(User).filter(User.email == email).first()
    if obj:
        return obj
    return store.create_user(email, **kwargs)

def main():
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    db = build_sessionmaker(engine)()
    try:
        store = SurveyStore(db)
        owner = get_or_create(store, "owner@example.com", full_name="Olivia Owner")

        print("Seeded users:")
        print(f"Owner user_id:  {owner.user_id}")
        print(f"Owner token:    {owner_token(owner.user_id)}")
    finally:
        db.close()
        engine.dispose()

if __name__ == "__main__":
    main()
