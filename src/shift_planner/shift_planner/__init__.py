"""Shift Planner package.

Feature modules (teams, access, shifts, vacations, planning, ...) follow the
same split as the rest of the code base: frozen dataclass models, Protocol
repositories with MySQL implementations, services holding the business rules
and a thin Flask controller layer on top.
"""
