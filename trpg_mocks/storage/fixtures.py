"""Canonical seed rows for the TRPG schema.

Every row carries an explicit id so that seeding through ``upsert`` is
idempotent: seeding twice leaves the same counts.
"""

from .datastore import DataStore

CAMPAIGNS = [
    {
        "id": "1",
        "name": "Test Campaign 1",
        "description": "An adventure in a fantasy world",
        "game_system": "D&D 5e",
        "gm_id": "gm1",
        "status": "active",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    },
    {
        "id": "2",
        "name": "Test Campaign 2",
        "description": "An investigation in a cyberpunk city",
        "game_system": "Cyberpunk 2020",
        "gm_id": "gm2",
        "status": "planning",
        "created_at": "2024-01-02T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00Z",
    },
]

CHARACTERS = [
    {
        "id": "1",
        "campaign_id": "1",
        "name": "Aria the Elven Archer",
        "race": "Elf",
        "character_class": "Ranger",
        "level": 3,
        "character_type": "PC",
        "player_id": "player1",
        "created_at": "2024-01-01T01:00:00Z",
        "updated_at": "2024-01-01T01:00:00Z",
    },
    {
        "id": "2",
        "campaign_id": "1",
        "name": "Grim the Dwarven Warrior",
        "race": "Dwarf",
        "character_class": "Fighter",
        "level": 4,
        "character_type": "PC",
        "player_id": "player2",
        "created_at": "2024-01-01T01:30:00Z",
        "updated_at": "2024-01-01T01:30:00Z",
    },
    {
        "id": "3",
        "campaign_id": "1",
        "name": "Elder Wisdom",
        "race": "Human",
        "character_class": "Cleric",
        "level": 8,
        "character_type": "NPC",
        "player_id": None,
        "created_at": "2024-01-01T02:00:00Z",
        "updated_at": "2024-01-01T02:00:00Z",
    },
]

SESSIONS = [
    {
        "id": "1",
        "campaign_id": "1",
        "session_number": 1,
        "title": "The Adventure Begins",
        "status": "completed",
        "scheduled_start_time": "2024-01-05T19:00:00Z",
        "actual_start_time": "2024-01-05T19:05:00Z",
        "actual_end_time": "2024-01-05T22:30:00Z",
        "created_at": "2024-01-05T18:00:00Z",
        "updated_at": "2024-01-05T22:30:00Z",
    },
    {
        "id": "2",
        "campaign_id": "1",
        "session_number": 2,
        "title": "Exploring the Old Ruins",
        "status": "scheduled",
        "scheduled_start_time": "2024-01-12T19:00:00Z",
        "created_at": "2024-01-06T10:00:00Z",
        "updated_at": "2024-01-06T10:00:00Z",
    },
]

EVENTS = [
    {
        "id": "1",
        "session_id": "1",
        "title": "Goblin Encounter",
        "description": "Three goblins ambush the party in the forest",
        "event_type": "combat",
        "timestamp": "2024-01-05T20:00:00Z",
        "created_at": "2024-01-05T20:00:00Z",
        "updated_at": "2024-01-05T20:15:00Z",
    },
    {
        "id": "2",
        "session_id": "1",
        "title": "Treasure Chest Found",
        "description": "An old chest is hidden in the goblin lair",
        "event_type": "discovery",
        "timestamp": "2024-01-05T21:00:00Z",
        "created_at": "2024-01-05T21:00:00Z",
        "updated_at": "2024-01-05T21:00:00Z",
    },
]

QUESTS = [
    {
        "id": "1",
        "campaign_id": "1",
        "title": "Search for the Lost Relic",
        "description": "Recover the ancient elven relic and bring it back to the village",
        "status": "active",
        "difficulty": "medium",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-05T22:30:00Z",
    },
]

LOCATIONS = [
    {
        "id": "1",
        "campaign_id": "1",
        "name": "Greenleaf Village",
        "description": "A small elven village surrounded by a lush forest",
        "location_type": "settlement",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    },
    {
        "id": "2",
        "campaign_id": "1",
        "name": "Ancient Ruins",
        "description": "Mysterious stone ruins deep in the forest",
        "location_type": "dungeon",
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
    },
]

AI_REQUESTS = [
    {
        "id": "1",
        "provider": "openai",
        "model": "gpt-3.5-turbo",
        "prompt": "Generate a fantasy character",
        "context": {},
        "timestamp": "2024-01-01T10:00:00Z",
        "response": "Generated character data...",
        "tokens_used": 150,
        "processing_time": 1200,
        "category": "character_generation",
    },
]

# Parents before children so foreign keys resolve.
SEED_ORDER = (
    ("campaigns", CAMPAIGNS),
    ("characters", CHARACTERS),
    ("sessions", SESSIONS),
    ("events", EVENTS),
    ("quests", QUESTS),
    ("locations", LOCATIONS),
    ("ai_requests", AI_REQUESTS),
)


def seed(store: DataStore) -> dict[str, int]:
    """Upsert every fixture row into ``store`` and return the resulting counts."""
    for table, rows in SEED_ORDER:
        for row in rows:
            store.upsert(table, row)
    return store.counts()
