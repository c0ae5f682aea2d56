"""
Seed a demo master, client, category and service into the configured store.

    python scripts/seed_demo.py
"""

from masterbook.config import settings
from masterbook.repositories import build_repository
from masterbook.services.scheduling import ActorRole, default_availability


# ======================================================
# SEED
# ======================================================

def main():
    repo = build_repository(settings)

    master = repo.add_account(ActorRole.MASTER, "Demo Master", "master@example.com")
    client = repo.add_account(ActorRole.CLIENT, "Demo Client", "client@example.com")
    category_id = repo.add_category("Haircuts")
    service = repo.add_service(master.id, "Classic haircut", 1500, category_id=category_id)

    # Store the default week so the master can take orders right away
    repo.save_availability(default_availability(master.id))

    print(f"Storage: {settings.storage_backend}")
    print(f"Master id={master.id}, client id={client.id}, service id={service.id}")


if __name__ == "__main__":
    main()
