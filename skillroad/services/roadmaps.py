"""
Roadmap generation: ask the LLM for a curriculum and store it.

The roadmap and its modules must be generated; resources and the assessment
for each module are best-effort. If one of those fails the module is still
saved, just without them.
"""

import logging
from urllib.parse import quote_plus

from sqlalchemy.orm import Session

from skillroad import storage
from skillroad.schemas import RoadmapDetail
from skillroad.services import content

logger = logging.getLogger(__name__)


def resource_search_url(search_query: str) -> str:
    return f"https://www.youtube.com/results?search_query={quote_plus(search_query)}"


def build_roadmap(db: Session, user_id: str, job_role: str, experience_level: str, generator=content) -> RoadmapDetail:
    """
    Generate and persist a full roadmap for the user.

    `generator` is any object with the three generate_* functions of
    skillroad.services.content (swapped out in tests).
    Raises ContentGenerationError if the roadmap itself can't be generated.
    """
    generated = generator.generate_roadmap(job_role, experience_level)

    roadmap = storage.create_roadmap(
        db,
        user_id=user_id,
        title=generated.title,
        description=generated.description,
        job_role=job_role,
        experience_level=experience_level,
        estimated_hours=round(generated.total_estimated_hours),
    )

    for index, module_data in enumerate(generated.modules):
        module = storage.create_module(
            db,
            roadmap_id=roadmap.id,
            title=module_data.title,
            description=module_data.description,
            order_index=index,
            estimated_hours=round(module_data.estimated_hours),
            is_locked=index > 0,        # first module unlocked, rest locked
        )

        try:
            resources = generator.generate_resource_recommendations(module_data.title, module_data.skills, job_role)
            for resource in resources:
                storage.create_resource(
                    db,
                    module_id=module.id,
                    title=resource.title,
                    type=resource.type,
                    url=resource_search_url(resource.search_query),
                    provider=resource.provider,
                    duration=resource.estimated_duration,
                )
        except Exception:
            db.rollback()
            logger.exception("Error generating resources for module %s", module.id)

        try:
            assessment = generator.generate_assessment(module_data.title, module_data.skills, job_role)
            storage.create_assessment(
                db,
                module_id=module.id,
                title=assessment.title,
                description=assessment.description,
                questions=[q.model_dump(by_alias=True) for q in assessment.questions],
            )
        except Exception:
            db.rollback()
            logger.exception("Error generating assessment for module %s", module.id)

    logger.info("Generated roadmap %s for %r (%d modules)", roadmap.id, job_role, len(generated.modules))
    return storage.get_roadmap_with_modules(db, roadmap.id, user_id)
