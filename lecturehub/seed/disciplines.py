"""
lecturehub/seed/disciplines.py
Seed the discipline catalog (idempotent)

Disciplines are catalog data: the generator can only pick from these ids.
Run directly with `python -m lecturehub.seed.disciplines` or let init_db
seed them on startup when FEATURE_SEED_DISCIPLINES is on.
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lecturehub.orm.discipline import Discipline

logger = logging.getLogger(__name__)


DISCIPLINES = [
    # ============================================
    # ARTS & LETTERS
    # ============================================
    {
        "id": "art",
        "name": "Art",
        "category": "arts-letters",
        "description": "Study of visual arts, design, and artistic expression",
    },
    {
        "id": "communication-studies",
        "name": "Communication Studies",
        "category": "arts-letters",
        "description": "Study of human communication, media, and interpersonal relationships",
    },
    {
        "id": "design",
        "name": "Design",
        "category": "arts-letters",
        "description": "Study of visual communication, graphic design, and creative problem-solving",
    },
    {
        "id": "english",
        "name": "English",
        "category": "arts-letters",
        "description": "Study of literature, writing, and communication",
    },
    {
        "id": "history",
        "name": "History",
        "category": "arts-letters",
        "description": "Study of past events, societies, and historical analysis",
    },
    {
        "id": "humanities-religious-studies",
        "name": "Humanities & Religious Studies",
        "category": "arts-letters",
        "description": "Study of human culture, values, and religious traditions",
    },
    {
        "id": "music",
        "name": "Music",
        "category": "arts-letters",
        "description": "Study of musical theory, performance, and composition",
    },
    {
        "id": "philosophy",
        "name": "Philosophy",
        "category": "arts-letters",
        "description": "Study of fundamental questions about existence, knowledge, and ethics",
    },
    {
        "id": "theatre-dance",
        "name": "Theatre & Dance",
        "category": "arts-letters",
        "description": "Study of dramatic arts, performance, and movement",
    },
    {
        "id": "world-languages-literatures",
        "name": "World Languages & Literatures",
        "category": "arts-letters",
        "description": "Study of foreign languages, literatures, and cultural studies",
    },
    # ============================================
    # BUSINESS
    # ============================================
    {
        "id": "business-administration",
        "name": "Business Administration",
        "category": "business",
        "description": "Study of business operations, management, and organizational leadership",
    },
    {
        "id": "accounting",
        "name": "Accounting",
        "category": "business",
        "description": "Study of financial reporting, analysis, and business decision-making",
    },
    {
        "id": "finance",
        "name": "Finance",
        "category": "business",
        "description": "Study of financial systems, investment, and corporate finance",
    },
    {
        "id": "marketing",
        "name": "Marketing",
        "category": "business",
        "description": "Study of product promotion, market research, and consumer behavior",
    },
    # ============================================
    # ENGINEERING & COMPUTER SCIENCE
    # ============================================
    {
        "id": "civil-engineering",
        "name": "Civil Engineering",
        "category": "engineering-computer-science",
        "description": "Design and construction of infrastructure and buildings",
    },
    {
        "id": "computer-engineering",
        "name": "Computer Engineering",
        "category": "engineering-computer-science",
        "description": "Integration of computer science and electrical engineering",
    },
    {
        "id": "computer-science",
        "name": "Computer Science",
        "category": "engineering-computer-science",
        "description": "Study of computation, programming, algorithms, and computer systems",
    },
    {
        "id": "construction-management",
        "name": "Construction Management",
        "category": "engineering-computer-science",
        "description": "Management of construction projects and operations",
    },
    {
        "id": "electrical-electronic-engineering",
        "name": "Electrical and Electronic Engineering",
        "category": "engineering-computer-science",
        "description": "Study of electrical systems, electronics, and electromagnetism",
    },
    {
        "id": "mechanical-engineering",
        "name": "Mechanical Engineering",
        "category": "engineering-computer-science",
        "description": "Design and analysis of mechanical systems, machines, and processes",
    },
    # ============================================
    # HEALTH & HUMAN SERVICES
    # ============================================
    {
        "id": "communication-sciences-disorders",
        "name": "Communication Sciences & Disorders",
        "category": "health-human-services",
        "description": "Study of speech, language, and communication disorders",
    },
    {
        "id": "criminal-justice",
        "name": "Criminal Justice",
        "category": "health-human-services",
        "description": "Study of crime, law enforcement, and criminal justice systems",
    },
    {
        "id": "health-science",
        "name": "Health Science",
        "category": "health-human-services",
        "description": "Study of health systems, healthcare delivery, and wellness",
    },
    {
        "id": "kinesiology",
        "name": "Kinesiology",
        "category": "health-human-services",
        "description": "Study of human movement and physical activity",
    },
    {
        "id": "nursing",
        "name": "Nursing",
        "category": "health-human-services",
        "description": "Healthcare profession focused on patient care and health promotion",
    },
    {
        "id": "physical-therapy",
        "name": "Physical Therapy",
        "category": "health-human-services",
        "description": "Study of physical rehabilitation and therapeutic exercise",
    },
    {
        "id": "public-health",
        "name": "Public Health",
        "category": "health-human-services",
        "description": "Study of health and disease at the population level",
    },
    {
        "id": "recreation-parks-tourism",
        "name": "Recreation, Parks & Tourism",
        "category": "health-human-services",
        "description": "Study of leisure, recreation, and tourism management",
    },
    {
        "id": "social-work",
        "name": "Social Work",
        "category": "health-human-services",
        "description": "Study of social welfare, human services, and community support",
    },
    # ============================================
    # NATURAL SCIENCES & MATHEMATICS
    # ============================================
    {
        "id": "biological-sciences",
        "name": "Biological Sciences",
        "category": "natural-sciences-mathematics",
        "description": "Study of living organisms, including molecular biology, ecology, genetics, and physiology",
    },
    {
        "id": "chemistry",
        "name": "Chemistry",
        "category": "natural-sciences-mathematics",
        "description": "Study of matter, chemical reactions, and the composition of substances",
    },
    {
        "id": "geography",
        "name": "Geography",
        "category": "natural-sciences-mathematics",
        "description": "Study of spatial relationships, human-environment interactions, and regional analysis",
    },
    {
        "id": "geology",
        "name": "Geology",
        "category": "natural-sciences-mathematics",
        "description": "Study of the Earth, its materials, processes, and history",
    },
    {
        "id": "mathematics-statistics",
        "name": "Mathematics and Statistics",
        "category": "natural-sciences-mathematics",
        "description": "Study of numbers, quantities, structures, patterns, and data analysis",
    },
    {
        "id": "physics-astronomy",
        "name": "Physics & Astronomy",
        "category": "natural-sciences-mathematics",
        "description": "Study of matter, energy, fundamental forces, and celestial bodies",
    },
    # ============================================
    # SOCIAL SCIENCES & INTERDISCIPLINARY STUDIES
    # ============================================
    {
        "id": "anthropology",
        "name": "Anthropology",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of human societies, cultures, and human evolution",
    },
    {
        "id": "asian-studies",
        "name": "Asian Studies",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of Asian cultures, languages, and societies",
    },
    {
        "id": "economics",
        "name": "Economics",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of production, distribution, and consumption of goods and services",
    },
    {
        "id": "environmental-studies",
        "name": "Environmental Studies",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of environmental systems and solutions to environmental problems",
    },
    {
        "id": "ethnic-studies",
        "name": "Ethnic Studies",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of race, ethnicity, and cultural diversity",
    },
    {
        "id": "family-consumer-sciences",
        "name": "Family & Consumer Sciences",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of family dynamics, consumer behavior, and human development",
    },
    {
        "id": "gerontology",
        "name": "Gerontology",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of aging and the aging process",
    },
    {
        "id": "liberal-studies",
        "name": "Liberal Studies",
        "category": "social-sciences-interdisciplinary",
        "description": "Interdisciplinary study of humanities, social sciences, and natural sciences",
    },
    {
        "id": "nutrition-food-dietetics",
        "name": "Nutrition, Food & Dietetics",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of nutrition, food science, and dietary health",
    },
    {
        "id": "political-science",
        "name": "Political Science",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of government, politics, and political behavior",
    },
    {
        "id": "psychology",
        "name": "Psychology",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of human behavior and mental processes",
    },
    {
        "id": "public-policy-administration",
        "name": "Public Policy & Administration",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of public policy, government administration, and public affairs",
    },
    {
        "id": "social-science",
        "name": "Social Science",
        "category": "social-sciences-interdisciplinary",
        "description": "Interdisciplinary study of human society and social behavior",
    },
    {
        "id": "sociology",
        "name": "Sociology",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of society, social institutions, and social relationships",
    },
    {
        "id": "womens-gender-studies",
        "name": "Women's & Gender Studies",
        "category": "social-sciences-interdisciplinary",
        "description": "Study of gender roles, feminism, and gender equality",
    },
    # ============================================
    # EDUCATION
    # ============================================
    {
        "id": "education",
        "name": "Education",
        "category": "education",
        "description": "Study of teaching, learning, and educational practice",
    },
    {
        "id": "teaching-credentials",
        "name": "Teaching Credentials",
        "category": "education",
        "description": "Professional preparation for teaching certification",
    },
]


async def seed_disciplines(db: AsyncSession) -> int:
    """
    Insert catalog disciplines that are missing.

    Existing rows are left untouched so module_count survives re-seeding.
    Returns the number of disciplines created. Caller commits.
    """
    result = await db.execute(select(Discipline.id))
    existing_ids = set(result.scalars().all())

    created_count = 0
    for discipline_data in DISCIPLINES:
        if discipline_data["id"] in existing_ids:
            continue
        db.add(Discipline(module_count=0, **discipline_data))
        created_count += 1

    await db.flush()

    logger.info(
        f"Discipline catalog: {created_count} created, "
        f"{len(existing_ids)} already exist"
    )
    return created_count


async def main():
    """Main entry point"""
    from lecturehub.database import AsyncSessionLocal, init_db

    logging.basicConfig(level=logging.INFO)
    await init_db()

    async with AsyncSessionLocal() as session:
        try:
            await seed_disciplines(session)
            await session.commit()
        except Exception as e:
            logger.error(f"Error seeding disciplines: {str(e)}")
            await session.rollback()
            raise

    logger.info("Discipline seeding complete")


if __name__ == "__main__":
    asyncio.run(main())
