"""
Prompt Assembler

Converts the classified level, retrieved knowledge, recent dive logs and
remembered exchanges into the chat messages sent to the LLM.
"""

from typing import Sequence

from app.models.dive_log import DiveLog
from app.services.coaching.level import UserLevel
from app.services.rag.retriever import KnowledgePassage

MAX_PROMPT_PASSAGES = 3

NO_KNOWLEDGE_NOTICE = (
    "No specific knowledge found in Daniel Koval's training materials for this "
    "question. Tell the member you don't have specific guidance on this topic from "
    "Daniel's materials rather than giving generic freediving advice."
)


def get_level_instruction(level: UserLevel) -> str:
    """Get instruction based on the diver's classified level."""
    if level == "expert":
        return (
            "This member is an experienced freediver or instructor. Use precise "
            "technical language and expert-level detail; skip the basics."
        )
    return (
        "This member is still building their foundation. Explain technique in plain "
        "language, one element at a time, and stress conservative progression."
    )


def compile_system_prompt(
    level: UserLevel,
    embed_mode: bool = False,
    has_dive_logs: bool = False,
) -> str:
    """
    Compile the coaching system prompt.

    Args:
        level: "expert" or "beginner"
        embed_mode: True when the chat runs inside the embedded member widget
        has_dive_logs: True when recent dive logs are attached to the prompt

    Returns:
        System prompt string for the LLM
    """
    if embed_mode:
        audience = "You are speaking with an authenticated member through an embedded widget on their private member page."
        word_limit = 600
    else:
        audience = "You are speaking with an authenticated member on their training dashboard."
        word_limit = 800

    if has_dive_logs:
        dive_log_rule = (
            "Their recent dive logs are attached below. Reference specific dives, depths, "
            "dates and progression patterns when you coach."
        )
    else:
        dive_log_rule = ""

    policy = f"""You are Koval Deep AI, Daniel Koval's freediving coaching system. {audience}
{dive_log_rule}

Coaching Level:
{get_level_instruction(level)}

Core Rules:
1. Only use Daniel Koval's methodology from the Knowledge Base. Never invent training protocols.
2. If the Knowledge Base contains "Bot Must Say" instructions, include that text verbatim.
3. Quote safety rules exactly as written; never paraphrase them.
4. Never recommend progression while symptoms are present. Progress in 2-3m increments only.
5. Use the E.N.C.L.O.S.E. framework (Equalization, Narcosis, Contractions, Leg burn,
   O2/recovery, Squeeze, Equipment) when diagnosing problems.
6. Always prioritize safety above performance goals and remind them never to dive alone.

Keep responses detailed but focused (under {word_limit} words)."""

    return policy.strip()


def compile_knowledge_message(passages: Sequence[KnowledgePassage]) -> str:
    """Join at most three passages; extra passages are dropped."""
    selected = [p.text for p in passages[:MAX_PROMPT_PASSAGES]]
    if not selected:
        return f"Knowledge Base:\n{NO_KNOWLEDGE_NOTICE}"
    return "Knowledge Base:\n" + "\n\n".join(selected)


def format_dive_log(log: DiveLog) -> str:
    details = [
        f"📅 {log.dive_date.isoformat() if log.dive_date else 'Unknown date'}",
        f"🏊 {log.discipline or 'Unknown discipline'}",
        f"📍 {log.location or 'Unknown location'}",
        f"🎯 Target: {_depth(log.target_depth)} → Reached: {_depth(log.reached_depth)}",
        f"💨 Mouthfill: {_depth(log.mouthfill_depth)}" if log.mouthfill_depth else "",
        f"⚠️ Issue at: {_depth(log.issue_depth)}" if log.issue_depth else "",
        f"💭 Issue: {log.issue_comment}" if log.issue_comment else "",
        "🩸 Squeeze reported" if log.squeeze else "",
        "🚨 Blackout reported" if log.blackout else "",
        f"📝 {log.notes}" if log.notes else "",
    ]
    return " | ".join(d for d in details if d)


def _depth(value: float | None) -> str:
    if value is None:
        return "?"
    return f"{value:g}m"


def compile_dive_log_context(logs: Sequence[DiveLog], profile: dict) -> str:
    """Summarize the member's recent dives for the coach. Logs are newest first."""
    lines = "\n".join(format_dive_log(log) for log in logs)
    last = logs[0]
    last_depth = last.reached_depth if last.reached_depth is not None else last.target_depth
    progress = (
        "Multiple sessions recorded - analyze patterns and progression"
        if len(logs) >= 3
        else "Limited data - focus on current goals"
    )
    return f"""MEMBER'S RECENT DIVE LOGS (last {len(logs)} dives):
{lines}

Dive statistics:
- Personal best: {profile.get('pb', 'Unknown')}m
- Last dive depth: {_depth(last_depth)}
- Progress analysis: {progress}"""


def assemble_messages(
    message: str,
    level: UserLevel,
    passages: Sequence[KnowledgePassage],
    embed_mode: bool = False,
    dive_logs: Sequence[DiveLog] = (),
    profile: dict | None = None,
    history: Sequence[dict] = (),
) -> list[dict]:
    """
    Build the full message list for one chat turn.

    Args:
        message: The member's message
        level: Classified user level
        passages: Retrieved knowledge passages (only the first three are used)
        embed_mode: Embedded widget flag
        dive_logs: Recent dive logs, newest first
        profile: Merged profile for this turn
        history: Remembered exchanges ({"userMessage", "assistantReply"}), oldest first
    """
    messages = [
        {"role": "system", "content": compile_system_prompt(level, embed_mode, bool(dive_logs))},
        {"role": "system", "content": compile_knowledge_message(passages)},
    ]
    if dive_logs:
        messages.append(
            {"role": "system", "content": compile_dive_log_context(dive_logs, profile or {})}
        )
    for turn in history:
        if turn.get("userMessage") and turn.get("assistantReply"):
            messages.append({"role": "user", "content": turn["userMessage"]})
            messages.append({"role": "assistant", "content": turn["assistantReply"]})
    messages.append({"role": "user", "content": message})
    return messages
