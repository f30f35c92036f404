"""Canned TRPG content returned by the provider simulators.

Content is chosen by literal keyword match on the prompt against the table of
the provider's call style. The table order is fixed, so a prompt always maps
to the same entry.
"""

import json

CHARACTER = {
    "name": "Aria the Elven Archer",
    "race": "Elf",
    "class": "Ranger",
    "level": 3,
    "background": (
        "A young elf raised as a guardian of the forest. The best shot in her "
        "village, she values harmony with nature."
    ),
    "stats": {"str": 12, "dex": 16, "con": 14, "int": 13, "wis": 15, "cha": 11},
    "equipment": ["Elven bow", "Leather armor", "Cloak", "Quiver (20 arrows)"],
}

EVENT = {
    "title": "Discovery of the Old Ruins",
    "description": (
        "Deep in the forest you find moss-covered stone ruins. Ancient script is "
        "carved above the entrance."
    ),
    "choices": [
        {"id": 1, "text": "Investigate the ruins carefully", "difficulty": "normal"},
        {"id": 2, "text": "Call your companions before exploring", "difficulty": "easy"},
        {"id": 3, "text": "Enter the ruins at once", "difficulty": "hard"},
    ],
    "rewards": ["Ancient scroll", "200 XP", "50 gold"],
}

NPC_LINE = (
    '"Traveler, an old magic lingers over this forest. Tread carefully." '
    "The aged druid raised his staff as he spoke the warning."
)

CAMPAIGN_OUTLINE = """[Campaign proposal]

**Setting**: An age where magic and machinery coexist. Ruins of an ancient
magical civilization are scattered across the land.

**Themes**:
- The search for lost ancient technology
- The fusion of magic and science
- Cooperation and conflict between peoples

**Suggested structure**:
1. Hook: rumors of a newly found ruin
2. Development: exploration and puzzles
3. Climax: confronting the ancient guardian
4. Resolution: what the discovery means for the future

This theme fits in 3-5 sessions and lets player choices shape the story."""

RULES_RULING = """For that situation I recommend the following ruling:

**Skill check**: Knowledge (Ancient History), DC 15
**Success**: The script is partially understood
**Failure**: The danger in the script goes unnoticed

**Additional considerations**:
- +2 bonus if a linguist is in the party
- Automatic success with magical translation
- Give partial information even on a failure"""

MILESTONES = {
    "milestones": [
        {
            "id": "milestone_001",
            "title": "Find the ruin entrance",
            "description": "Discover the entrance to the ancient ruins deep in the forest",
            "requiredActions": ["explore", "decipher ancient script"],
            "rewards": ["100 XP", "clue item"],
            "estimatedTime": "30 minutes",
        },
        {
            "id": "milestone_002",
            "title": "The first riddle",
            "description": "Solve the mechanism inside the ruins",
            "requiredActions": ["solve riddle", "work together"],
            "rewards": ["150 XP", "magic item"],
            "estimatedTime": "45 minutes",
        },
    ],
    "totalEstimatedTime": "2 hours",
    "difficulty": "medium",
    "theme": "exploration and puzzles",
}

ENTITIES = {
    "entities": {
        "npcs": [
            {"name": "Merlin the Sage", "role": "informant", "location": "village library"},
            {"name": "Merchant guild envoy", "role": "supplies", "location": "market district"},
        ],
        "enemies": [
            {"name": "Ruin Warden", "type": "golem", "level": 4, "location": "ruin depths"},
            {"name": "Shadow Assassin", "type": "assassin", "level": 3, "location": "ruin entrance"},
        ],
        "items": [
            {"name": "Ancient map", "rarity": "uncommon", "effect": "never lost inside the ruins"},
            {"name": "Ring of deciphering", "rarity": "rare", "effect": "translates ancient script"},
        ],
    }
}

# Per call style: (keywords, text). First match wins.
KEYWORD_TABLES: dict[str, list[tuple[tuple[str, ...], str]]] = {
    "chat": [
        (("character",), json.dumps(CHARACTER)),
        (("event",), json.dumps(EVENT)),
        (("NPC", "behavior"), NPC_LINE),
    ],
    "messages": [
        (("campaign",), CAMPAIGN_OUTLINE),
        (("rules",), RULES_RULING),
    ],
    "generate": [
        (("milestone",), json.dumps(MILESTONES)),
        (("entity",), json.dumps(ENTITIES)),
    ],
}

ACKNOWLEDGEMENTS = {
    "chat": "Connection successful. AI assistant is ready to help with your TRPG campaign.",
    "messages": "Connection successful. Claude is ready to assist with detailed TRPG campaign management.",
    "generate": "Connection successful. Gemini is ready to generate TRPG content.",
}


def select_content(style: str, prompt: str) -> str:
    """Pick the canned text for a prompt.

    Args:
        style: Provider call style ("chat", "messages" or "generate").
        prompt: Prompt text taken from the request.
    """
    style = style if style in KEYWORD_TABLES else "chat"
    for keywords, text in KEYWORD_TABLES[style]:
        if any(keyword in prompt for keyword in keywords):
            return text
    return ACKNOWLEDGEMENTS[style]
