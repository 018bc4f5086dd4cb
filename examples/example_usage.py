"""Example: call the planning services directly, without Flask.

Controllers are thin; everything below is what the JSON endpoints return.
"""

import importlib
import json

from config import get_settings_module

from src.shift_planner.shift_planner.access.model import Actor
from src.shift_planner.shift_planner.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    # user 2 is the planner from database/seed.sql
    planner = Actor(user_id=2, roles=container.roles_repo.get_roles(2))
    conflicts = container.planning_service.conflicts(actor=planner)
    print(json.dumps([c.to_dict() for c in conflicts], indent=2))
    print(json.dumps(container.planning_service.fairness(actor=planner).to_dict(), indent=2))


if __name__ == "__main__":
    main()
