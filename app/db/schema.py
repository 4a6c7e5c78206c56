"""Création du schéma PostgreSQL et données d'exemple."""
from app.db.postgres_connector import PostgresConnector
from app.logger import logger

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id SERIAL PRIMARY KEY,
    email TEXT UNIQUE NOT NULL,
    password TEXT NOT NULL,
    name TEXT,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS temples (
    id SERIAL PRIMARY KEY,
    name TEXT NOT NULL,
    type TEXT NOT NULL, -- Hindu, Buddhist, Jain, Sikh, Other
    address TEXT,
    city TEXT,
    lat DOUBLE PRECISION,
    lng DOUBLE PRECISION,
    opening_hours TEXT,
    ritual_timings TEXT,
    festivals TEXT,
    accessibility TEXT,
    contact TEXT,
    description TEXT,
    image_url TEXT
);

CREATE TABLE IF NOT EXISTS reviews (
    id SERIAL PRIMARY KEY,
    temple_id INTEGER REFERENCES temples(id),
    user_id INTEGER REFERENCES users(id),
    rating INTEGER,
    comment TEXT,
    created_at TIMESTAMPTZ DEFAULT now()
);

CREATE TABLE IF NOT EXISTS events (
    id SERIAL PRIMARY KEY,
    temple_id INTEGER REFERENCES temples(id),
    title TEXT,
    description TEXT,
    event_date TIMESTAMPTZ
);
"""

SAMPLE_TEMPLES = [
    {
        "name": "Dagadusheth Halwai Ganapati Temple", "category": "Hindu",
        "address": "Ganpati Bhavan, 250, Budhwar Peth, Pune", "city": "Pune",
        "lat": 18.5164, "lng": 73.8560,
        "opening_hours": "6:00 AM - 11:00 PM",
        "ritual_timings": "Aarti at 7:30 AM, 1:30 PM, 8:00 PM",
        "festivals": "Ganesh Chaturthi",
        "accessibility": "Wheelchair accessible, Parking available",
        "contact": "020 2447 9622",
        "description": "One of the most famous Ganesha temples in India.",
        "image_url": "https://picsum.photos/seed/dagadusheth/800/600",
    },
    {
        "name": "Chaturshringi Temple", "category": "Hindu",
        "address": "Senapati Bapat Road, Pune", "city": "Pune",
        "lat": 18.5392, "lng": 73.8273,
        "opening_hours": "6:00 AM - 9:00 PM",
        "ritual_timings": "Morning Puja at 7:00 AM",
        "festivals": "Navratri",
        "accessibility": "Steps involved, limited accessibility",
        "contact": "020 2565 0555",
        "description": "A hill temple dedicated to Goddess Chaturshringi.",
        "image_url": "https://picsum.photos/seed/chaturshringi/800/600",
    },
    {
        "name": "Osho Teerth Park (Near Buddhist Center)", "category": "Buddhist",
        "address": "Koregaon Park, Pune", "city": "Pune",
        "lat": 18.5375, "lng": 73.8885,
        "opening_hours": "6:00 AM - 9:00 AM, 3:00 PM - 6:00 PM",
        "ritual_timings": "Meditation sessions",
        "festivals": "Buddha Purnima",
        "accessibility": "Wheelchair accessible paths",
        "contact": "N/A",
        "description": "A serene park and meditation space.",
        "image_url": "https://picsum.photos/seed/osho/800/600",
    },
    {
        "name": "Katraj Jain Temple", "category": "Jain",
        "address": "Katraj, Pune", "city": "Pune",
        "lat": 18.4529, "lng": 73.8554,
        "opening_hours": "6:00 AM - 9:00 PM",
        "ritual_timings": "Prakshal at 7:00 AM",
        "festivals": "Mahavir Jayanti",
        "accessibility": "Wheelchair accessible",
        "contact": "N/A",
        "description": "A beautiful Jain temple complex on a hillock.",
        "image_url": "https://picsum.photos/seed/katrajjain/800/600",
    },
    {
        "name": "Gurudwara Guru Nanak Darbar", "category": "Sikh",
        "address": "Camp, Pune", "city": "Pune",
        "lat": 18.5126, "lng": 73.8787,
        "opening_hours": "Open 24 hours",
        "ritual_timings": "Gurbani Kirtan throughout the day",
        "festivals": "Gurpurab",
        "accessibility": "Wheelchair accessible, Langar hall",
        "contact": "N/A",
        "description": "A major spiritual center for the Sikh community in Pune.",
        "image_url": "https://picsum.photos/seed/gurudwara/800/600",
    },
]

INSERT_TEMPLE_SQL = """
INSERT INTO temples (name, type, address, city, lat, lng, opening_hours, ritual_timings,
                     festivals, accessibility, contact, description, image_url)
VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13)
"""

TEMPLE_COLUMNS = (
    "name", "category", "address", "city", "lat", "lng", "opening_hours",
    "ritual_timings", "festivals", "accessibility", "contact", "description", "image_url",
)


async def init_schema(db: PostgresConnector, seed: bool = True) -> None:
    """Crée les tables manquantes et insère les temples d'exemple si le catalogue est vide."""
    await db.execute(SCHEMA_SQL)
    logger.info("Database schema ready.")

    if not seed:
        return
    count = await db.fetchval("SELECT COUNT(*) FROM temples")
    if count == 0:
        await db.executemany(
            INSERT_TEMPLE_SQL,
            [tuple(temple[col] for col in TEMPLE_COLUMNS) for temple in SAMPLE_TEMPLES],
        )
        logger.info("Seeded {count} sample temples.", count=len(SAMPLE_TEMPLES))
