"""
Questline — Gamified Productivity Tracker with an AI Co-Founder
================================================================
Users complete quests, earn XP, level up and keep daily streaks, while
chatting with an AI co-founder that sees their progress context.

Package layout::

    questline/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Leveling formula, defaults, calendar helper
    ├── errors.py          # Typed error taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # Profile, Quest, ChatMessage
    ├── engine/
    │   ├── stream.py      # Incremental event-stream decoder
    │   ├── progression.py # XP → level calculation
    │   └── streak.py      # Daily streak state machine
    ├── services/
    │   ├── profile_service.py    # XP award + streak persistence
    │   ├── quest_service.py      # Quest CRUD with one-way completion
    │   ├── message_service.py    # Chat transcript persistence
    │   └── assistant_service.py  # Co-founder prompt + upstream gateway
    ├── client/
    │   ├── assistant.py   # Streaming HTTP client for the assistant
    │   ├── transcript.py  # Optimistic transcript synchronizer
    │   ├── ledger.py      # Quest ledger (in-memory cache + service)
    │   ├── chat.py        # Two-phase chat exchange
    │   └── session.py     # Explicit per-user session object
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config and JWT user dependencies
        └── routes/        # Profile, quests, messages, assistant proxy
"""

__version__ = "0.1.0"
