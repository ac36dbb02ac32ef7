"""Prompt templates for the two evaluation stages.

Both stages ask for a JSON object embedded in the answer. The result parser
tolerates surrounding prose, so the templates do not forbid it.
"""

# ---------------------------------------------------------------------------
# Stage 1: initial analysis
# ---------------------------------------------------------------------------

STAGE1_ANALYSIS = """\
You are an expert CV and project evaluator. Analyze the provided CV and project report.

CV Content:
{cv_text}

Project Report Content:
{report_text}

Please provide an initial analysis focusing on:
1. Key skills and experience from the CV
2. Project complexity and technical depth
3. Alignment between CV skills and project requirements
4. Initial impressions and areas that need deeper evaluation

Provide a structured analysis in JSON format with the following structure:
{{
  "cv_skills": ["skill1", "skill2", ...],
  "cv_experience_level": "junior/mid/senior",
  "project_complexity": "low/medium/high",
  "project_technologies": ["tech1", "tech2", ...],
  "skill_alignment": "poor/fair/good/excellent",
  "areas_for_deeper_evaluation": ["area1", "area2", ...]
}}
"""


# ---------------------------------------------------------------------------
# Stage 2: grounded evaluation
# ---------------------------------------------------------------------------

STAGE2_EVALUATION = """\
You are an expert CV and project evaluator. Based on the initial analysis and \
additional context, provide a comprehensive evaluation.

Initial Analysis:
{stage1_analysis}

Additional Context from Knowledge Base:
{context}

CV Content:
{cv_text}

Project Report Content:
{report_text}

Based on all this information, provide a comprehensive evaluation in the following JSON format:
{{
  "cv_match_rate": 0.0-1.0,
  "cv_feedback": "detailed feedback on CV quality, strengths, and areas for improvement",
  "project_score": 0.0-10.0,
  "project_feedback": "detailed feedback on project quality, technical implementation, and documentation",
  "overall_summary": "comprehensive summary of the candidate's suitability and recommendations"
}}

Scoring Guidelines:
- cv_match_rate: How well the CV matches the project requirements (0.0 = no match, 1.0 = perfect match)
- project_score: Overall project quality (0-10 scale, where 10 is exceptional)

Provide constructive, specific feedback that helps the candidate improve.
"""

CONTEXT_SEPARATOR = "\n\n"


def build_stage1_prompt(cv_text: str, report_text: str) -> str:
    return STAGE1_ANALYSIS.format(cv_text=cv_text, report_text=report_text)


def build_stage2_prompt(
    stage1_analysis: str,
    context: list[str],
    cv_text: str,
    report_text: str,
) -> str:
    return STAGE2_EVALUATION.format(
        stage1_analysis=stage1_analysis,
        context=CONTEXT_SEPARATOR.join(context),
        cv_text=cv_text,
        report_text=report_text,
    )
