"""Reference documents seeded into the evaluation-guideline collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class GuidelineDocument:
    id: str
    content: str
    metadata: dict[str, str] = field(default_factory=dict)


GUIDELINE_DOCUMENTS: list[GuidelineDocument] = [
    GuidelineDocument(
        id="backend_skills",
        content="""\
Backend Development Skills:
- Strong command of at least one backend language (Go, Python, Java, Node.js)
- Concurrency primitives of that language (goroutines/channels, asyncio, threads)
- Web frameworks and RESTful API design and implementation
- Database integration (SQL, ORMs, migrations)
- Microservices architecture knowledge
- Docker containerization and deployment
- Automated testing
- Version control with Git
- Clean architecture and dependency injection""",
        metadata={"category": "backend_skills", "level": "intermediate"},
    ),
    GuidelineDocument(
        id="project_evaluation_criteria",
        content="""\
Project Evaluation Criteria:
1. Code Quality (25%): clean, readable, well-structured code; proper error
   handling and logging; idiomatic conventions; useful documentation.
2. Architecture (25%): clean architecture, separation of concerns,
   dependency injection, database design and migrations.
3. Functionality (25%): working REST API endpoints, CRUD operations,
   input validation and sanitization, consistent response formatting.
4. Technical Implementation (25%): database integration and queries,
   authentication where required, test coverage, containerization.""",
        metadata={"category": "evaluation_criteria", "type": "project_assessment"},
    ),
    GuidelineDocument(
        id="cv_evaluation_guidelines",
        content="""\
CV Evaluation Guidelines:
1. Technical Skills: relevance of listed technologies to the role, depth
   versus breadth, evidence that skills were applied in real projects.
2. Experience: years and seniority of roles, ownership of production
   systems, measurable impact.
3. Projects: complexity, personal contribution, quality of descriptions.
4. Presentation: structure, clarity, documentation quality.""",
        metadata={"category": "evaluation_criteria", "type": "cv_assessment"},
    ),
    GuidelineDocument(
        id="scoring_rubric",
        content="""\
Scoring Rubric:
cv_match_rate (0.0-1.0):
- 0.0-0.3: few relevant skills, little applicable experience
- 0.4-0.6: partial match, notable gaps
- 0.7-0.8: strong match, minor gaps
- 0.9-1.0: exceptional match
project_score (0-10):
- 0-3: incomplete or non-functional
- 4-6: functional with significant gaps in quality or testing
- 7-8: solid implementation with minor issues
- 9-10: exceptional, production-ready""",
        metadata={"category": "scoring", "type": "rubric"},
    ),
]


def load_guideline_dir(directory: Path) -> list[GuidelineDocument]:
    """Load every ``.txt`` file in ``directory`` as a guideline document."""
    docs = []
    for path in sorted(directory.glob("*.txt")):
        docs.append(
            GuidelineDocument(
                id=path.stem,
                content=path.read_text(encoding="utf-8"),
                metadata={"source": str(path), "type": "evaluation_guideline"},
            )
        )
    return docs
