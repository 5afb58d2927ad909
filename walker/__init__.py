"""
Walker: virtual street-level walker

Provides:
- WalkerPositionStore: lat/lng/bearing pose moved by Direction commands
    (forward/backward steps of STEP_SIZE deg, turns of TURN_SIZE deg)

Usage:
    from walker.position import WalkerPositionStore, Direction
    store = WalkerPositionStore()
    store.move(Direction.FORWARD)   # or store.move("up")
"""
