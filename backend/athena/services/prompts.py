"""Prompt text for every mode. Standing instructions live in athena/prompts/*.md."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

_PROMPT_DIR = Path(__file__).parent.parent / "prompts"


def load_standing_instruction(name: str, fallback: str) -> str:
    """Load a mode's standing instruction from its markdown file."""
    path = _PROMPT_DIR / f"{name}.md"
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("%s not found, using fallback instruction", path)
        return fallback


# Load once at module import
MENTOR_INSTRUCTION = load_standing_instruction(
    "mentor", "You are a supportive academic mentor. Be empathetic, practical and motivating."
)
COMPETITIVE_INSTRUCTION = load_standing_instruction(
    "competitive", "You are an academic competition coach and judge simulator."
)
ASSIGNMENT_INSTRUCTION = load_standing_instruction(
    "assignment", "You are an academic assignment and project assistant."
)
EXAM_INSTRUCTION = load_standing_instruction(
    "exam", "You are Athena, a calm and friendly exam preparation companion."
)


def assignment_instruction(memory_summary: str) -> str:
    return f"""{ASSIGNMENT_INSTRUCTION}

LONG-TERM CONTEXT:
{memory_summary or "No prior context yet."}
"""


# =============================================================================
# STUDY MODE
# =============================================================================

STUDY_GREETING = "Hey 😊 What would you like to study today?"

ASK_SOURCE_REPLY = """Got it 👍 We'll study **{subject}**.

Would you like to **UPLOAD a syllabus** or should I **FETCH SYLLABUS** automatically?"""

SOURCE_REPROMPT = "Please reply **UPLOAD** to provide a syllabus or **FETCH** and I'll build one for **{subject}**."

UPLOAD_PLACEHOLDER = "User provided syllabus"

UPLOAD_NOTED_REPLY = "📄 Syllabus noted. Reply **LOCK SYLLABUS** when ready."

FETCHED_REPLY = "📘 **Syllabus fetched**:\n\n{syllabus}\n\nReply **LOCK SYLLABUS** to continue."

LOCK_REPROMPT = "Reply **LOCK SYLLABUS** when you're ready 🙂"

LOCKED_REPLY = """🔒 **Syllabus locked successfully**.

📘 Starting **{unit_title}**

I'll begin with **detailed notes**, then:
• ELI5 explanation
• Short notes
• Key summary
• Practice questions

Reply **YES** to begin."""

CONTINUE_SUFFIX = "\n\nReply **YES** to continue."

QUESTIONS_READY_SUFFIX = "\n\nReady for **practice questions**? Reply **YES**."

MORE_QUESTIONS_SUFFIX = "\n\nGenerate **10 more {question_type}**? Reply **YES** or **NO**."

NEXT_QUESTION_TYPE_REPLY = "Next: **{question_type}**.\nReply **YES** to begin."

NEXT_UNIT_REPLY = "📘 Moving to **{unit_title}**.\nReply **YES** to continue."

SYLLABUS_COMPLETE_REPLY = "🎉 You've finished every unit of **{subject}**. Start a new chat to study something else."

FETCH_SYLLABUS_PROMPT = """You are an academic curriculum expert.

Reconstruct the most appropriate syllabus using globally accepted standards.

Rules:
- School -> follow the board/curriculum
- University -> follow common program structures
- No browsing mentions
- No questions back to the user

Context:
Subject: {subject}
Institution: {institution}
Level: {level}
Board/University: {board}
Degree: {degree}
Major: {major}
"""

UNIT_SPLIT_PROMPT = """You are an academic planner.

Split the syllabus into sequential study units or weeks.
Return STRICT JSON ONLY. No explanations. No markdown.

Required format:
[
  {{
    "title": "Unit / Week name",
    "topics": ["topic 1", "topic 2", "topic 3"]
  }}
]

Syllabus:
{syllabus}
"""

TEACHING_INSTRUCTIONS = {
    "DETAIL": """You are an expert teacher creating full, exam-ready study notes.

Write very detailed notes.
Rules:
- Cover every topic and sub-topic in depth
- Explain concepts, definitions, mechanisms and reasoning
- Include examples wherever applicable
- Use clear headings, subheadings and bullet points
- This must read like a textbook chapter, not a summary""",
    "ELI5": """Explain the same content again in ELI5 style.
Rules:
- Simple language
- Analogies and intuitive explanations
- Assume a beginner
- No technical overload""",
    "SHORT": """Create short notes.
Rules:
- Concise and exam-oriented
- Bullet points only
- Definitions, formulas, keywords""",
    "SUMMARY": """Create a final summary.
Rules:
- Key takeaways only
- Very crisp
- Revision-focused""",
}

TEACHING_PROMPT = """{instruction}

Subject: {subject}
Unit: {unit_title}
Topics to cover:
{topics}

Do NOT include questions in this response.
"""

QUESTION_PROMPT = """You are an exam question setter.

Generate 10 {question_type} questions.

Context:
Subject: {subject}
Unit: {unit_title}
Topics:
{topics}

Mandatory rules:
- Every question must include its correct answer
- Clearly label QUESTION and ANSWER
- Mix difficulty levels (easy, medium, hard)
- Exam-oriented language

Subject-specific rules:
- Programming: include code-based and "predict the output" questions
- Mathematics: include numericals with step-by-step solutions
- Science: include application or diagram-based questions
- Theory/arts: include analytical and descriptive questions

Do NOT ask the user anything.
"""


# =============================================================================
# EXAM MODE
# =============================================================================

EXAM_UPLOAD_REPLY = """📄 **File uploaded successfully.**

I've stored the syllabus file.

For now, please:
• paste the syllabus text here, OR
• ask me to **fetch the syllabus**, OR
• tell me what topics you want to study"""

EXAM_EMPTY_REPROMPT = "Send me a message or attach your syllabus and we'll pick up from there 🙂"

EXAM_FETCHED_REPLY = "📘 **Fetched syllabus:**\n\n{syllabus}\n\nTell me how you want to study this."

EXAM_FETCH_PROMPT = """You are an academic curriculum expert.

Reconstruct an academically accurate, exam-oriented syllabus.

Strict rules:
- Subject is PRIMARY, degree is CONTEXT only
- Do not assume the degree name is the subject
- Follow Indian university norms if applicable
- No explanations, no questions
- Output must be detailed and usable for exam preparation

Structure:
- Return a unit-wise syllabus
- Each unit lists its title, major topics, and important subtopics or keywords
- Depth should match university semester exams
- Do not summarise vaguely

Subject: {subject}
Course type: {course_type}
Degree: {degree}
Major: {major}
Board/University: {board}
Level: {level}

Return the FULL DETAILED SYLLABUS CONTENT ONLY.
"""


# =============================================================================
# MEMORY COMPACTION
# =============================================================================

SUMMARY_INSTRUCTION = """Summarize the ongoing academic work.

Include:
- What the user is working on
- What has been completed
- What remains
- Any preferences or constraints

Do NOT include greetings.
Max 150 words.
"""

TITLE_PROMPT = """Create a short, clear academic chat title (max 8 words).

Rules:
- Be specific, not generic
- Reflect the main task or project
- No emojis
- No quotes
- No punctuation at the end

Examples:
DSA Stack Assignment
Physics Projectile Motion Homework
AI Essay Competition Prep
Web Development Mini Project

Conversation summary:
{summary}
"""
