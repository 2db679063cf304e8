"""Manufacturing bounded context: production orders on the shop floor.

Owns manufacturing orders, their product specification and timeline, and
creates orders for confirmed customer orders when automatic creation is
switched on.
"""

from protean.domain import Domain

manufacturing = Domain(name="manufacturing")
