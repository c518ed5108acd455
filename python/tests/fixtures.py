"""Stable seed content shared by scripts/seed_dev.py and tests.

Fixed ids keep local databases and test assertions in agreement.
No fixture data lives in migrations.
"""

from uuid import UUID

FIXTURE_CATEGORY_ID = UUID("00000000-0000-0000-0000-00000000c001")

FIXTURE_AUTHORS = [
    {
        "id": UUID("00000000-0000-0000-0000-00000000a001"),
        "name": "Marcus Aurelius",
        "slug": "marcus-aurelius",
        "bio": "Roman emperor and Stoic philosopher.",
    },
    {
        "id": UUID("00000000-0000-0000-0000-00000000a002"),
        "name": "Seneca",
        "slug": "seneca",
        "bio": "Stoic philosopher and dramatist.",
    },
]

FIXTURE_QUOTES = [
    {
        "id": UUID("00000000-0000-0000-0000-00000000b001"),
        "slug": "obstacle-is-the-way",
        "content": "The impediment to action advances action. What stands in the way becomes the way.",
        "author_profile_id": FIXTURE_AUTHORS[0]["id"],
    },
    {
        "id": UUID("00000000-0000-0000-0000-00000000b002"),
        "slug": "power-over-your-mind",
        "content": "You have power over your mind, not outside events.",
        "author_profile_id": FIXTURE_AUTHORS[0]["id"],
    },
    {
        "id": UUID("00000000-0000-0000-0000-00000000b003"),
        "slug": "suffer-more-in-imagination",
        "content": "We suffer more often in imagination than in reality.",
        "author_profile_id": FIXTURE_AUTHORS[1]["id"],
    },
]
