"""Default service catalog, inserted on startup when SEED_SERVICES is enabled"""

import logging

from sqlalchemy.orm import Session

from .repository import CatalogRepository

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {
        "name": "COMPLETE CHART ANALYSIS",
        "slug": "complete-chart-analysis",
        "price": 1500,
        "description": "A comprehensive analysis of your birth chart covering all major aspects of life including career, health, and relationships.",
        "icon": "Star",
        "features": [
            "Detailed birth chart analysis",
            "Life-long predictions",
            "Remedial measures",
            "Dasha analysis",
            "Panchang insights",
        ],
    },
    {
        "name": "RELATIONSHIP & MARRIAGE",
        "slug": "relationship-marriage",
        "price": 999,
        "description": "Detailed compatibility and relationship analysis for better understanding of your partner and timing for marriage.",
        "icon": "Heart",
        "features": [
            "Gun Milan / Compatibility",
            "Marriage timing",
            "Relationship longevity",
            "Mars (Mangal) Dosha check",
            "Effective remedies",
        ],
    },
    {
        "name": "CAREER & FINANCE",
        "slug": "career-finance",
        "price": 999,
        "description": "Insights into your professional life and financial growth. Find the right time for business ventures or job changes.",
        "icon": "Briefcase",
        "features": [
            "Profession selection",
            "Wealth yoga analysis",
            "Business vs Job",
            "Promotion timing",
            "Financial stability guide",
        ],
    },
    {
        "name": "EDUCATIONAL GUIDANCE",
        "slug": "educational-guidance",
        "price": 999,
        "description": "Strategic advice for academic success and learning paths based on your intellectual potential and planetary positions.",
        "icon": "BookOpen",
        "features": [
            "Stream selection",
            "Competitive exam success",
            "Higher education abroad",
            "Focus & memory remedies",
            "Skill development timing",
        ],
    },
    {
        "name": "HEALTH & WELLBEING",
        "slug": "health-wellbeing",
        "price": 999,
        "description": "Vedic perspectives on physical and mental health. Identify sensitive periods and suggested lifestyle adjustments based on your chart.",
        "icon": "Stethoscope",
        "features": [
            "Balarishta assessment",
            "Sensitive health areas",
            "Recovery timing",
            "Mental peace remedies",
            "Ayurvedic lifestyle alignment",
        ],
    },
    {
        "name": "GEMSTONE CONSULTATION",
        "slug": "gemstone-consultation",
        "price": 999,
        "description": "Personalized gemstone recommendations for positive energy and overcoming obstacles in specific life areas.",
        "icon": "Gem",
        "features": [
            "Life-stone analysis",
            "Benefic planet strengthening",
            "Obstacle removal gems",
            "Wearing instructions",
            "Gem quality guidance",
        ],
    },
]


def seed_services(db: Session) -> int:
    """Insert the default catalog into an empty services table; returns rows added"""
    repo = CatalogRepository()
    if repo.count_services(db) > 0:
        logger.info("Service catalog already populated, skipping seed")
        return 0

    for service_data in DEFAULT_SERVICES:
        repo.create_service(db, **service_data)

    logger.info(f"Seeded {len(DEFAULT_SERVICES)} services")
    return len(DEFAULT_SERVICES)
