from __future__ import annotations

from app.ai.types import ChatMessage

GAP_ANALYSIS_PROMPT = """You are a career gap analysis expert. Analyze the gap between the resume and job description.

EXTRACT:
1. Missing Skills: List only technical technologies present in the JD but absent in the Resume.
2. Steps: Provide EXACTLY 3 concrete project-based steps.
3. Questions: Provide EXACTLY 3 specific interview questions.

STRICT CONSTRAINTS:
- You MUST provide EXACTLY 3 steps and EXACTLY 3 questions. DO NOT provide 2, and DO NOT provide 4 or more.
- Return ONLY valid JSON. No conversational text.
- Use markdown list format within the JSON strings.

JSON STRUCTURE:
{{
  "missingSkills": ["skill1", "skill2"],
  "steps": "# Action Plan\\n- Step 1\\n- Step 2\\n- Step 3",
  "interviewQuestions": "# Interview Prep\\n- Question 1\\n- Question 2\\n- Question 3"
}}

DATA:
Resume:
{resume}

Job Description:
{job_description}"""


def build_gap_analysis_messages(resume: str, job_description: str) -> list[ChatMessage]:
    content = GAP_ANALYSIS_PROMPT.format(resume=resume, job_description=job_description)
    return [ChatMessage(role="user", content=content)]
