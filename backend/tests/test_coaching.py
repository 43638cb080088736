from datetime import date

import pytest

from app.models import DiveLog
from app.services.coaching.dive_data import extract_dive_data, validate_dive_data
from app.services.coaching.enclose import DEFAULT_QUESTIONS, diagnose
from app.services.coaching.prompts import NO_KNOWLEDGE_NOTICE, assemble_messages
from app.services.rag.retriever import KnowledgePassage


def passages(n):
    return [KnowledgePassage(text=f"Koval passage {i}", score=1 - i / 10) for i in range(n)]


# Prompt Assembler

def test_prompt_uses_at_most_three_passages():
    messages = assemble_messages("How deep?", "beginner", passages(5))
    knowledge = messages[1]["content"]
    assert "Koval passage 0" in knowledge
    assert "Koval passage 2" in knowledge
    assert "Koval passage 3" not in knowledge
    assert "Koval passage 0\n\nKoval passage 1" in knowledge


def test_prompt_without_passages_says_so():
    messages = assemble_messages("How deep?", "beginner", [])
    assert NO_KNOWLEDGE_NOTICE in messages[1]["content"]


def test_prompt_order_and_user_message_last():
    history = [{"userMessage": "Earlier question", "assistantReply": "Earlier answer"}]
    messages = assemble_messages("Now?", "expert", passages(1), history=history)
    assert [m["role"] for m in messages] == ["system", "system", "user", "assistant", "user"]
    assert messages[-1] == {"role": "user", "content": "Now?"}


def test_prompt_level_and_embed_mode():
    expert = assemble_messages("q", "expert", [], embed_mode=True)[0]["content"]
    beginner = assemble_messages("q", "beginner", [])[0]["content"]
    assert "experienced freediver" in expert
    assert "under 600 words" in expert
    assert "building their foundation" in beginner
    assert "under 800 words" in beginner


def test_prompt_includes_dive_logs():
    log = DiveLog(
        dive_date=date(2024, 5, 1),
        discipline="CWT",
        location="Dahab",
        target_depth=40,
        reached_depth=38,
        squeeze=True,
        blackout=False,
    )
    messages = assemble_messages("q", "beginner", [], dive_logs=[log], profile={"pb": 45})
    assert len(messages) == 4
    assert "RECENT DIVE LOGS" in messages[2]["content"]
    assert "Target: 40m → Reached: 38m" in messages[2]["content"]
    assert "Squeeze reported" in messages[2]["content"]
    assert "recent dive logs are attached" in messages[0]["content"]


# Dive Data Safety Check

def test_plain_question_has_no_dive_data():
    assert extract_dive_data("What is a safe ascent rate?") is None


def test_extracts_discipline_depth_and_time():
    data = extract_dive_data("Did a CWT dive, target 40m and reached 38m in 2:10")
    assert data.discipline == "CWT"
    assert data.target_depth == 40
    assert data.reached_depth == 38
    assert data.depth == 40
    assert data.total_time_seconds == 130
    assert validate_dive_data(data) == []


def test_discipline_names():
    assert extract_dive_data("my free immersion training").discipline == "FIM"
    assert extract_dive_data("dynb session").discipline == "DYNB"


def test_impossible_depth_is_rejected():
    errors = validate_dive_data(extract_dive_data("I reached 350m on CWT"))
    assert errors == ["Depth must be between 0-300m", "Reached depth must be between 0-300m"]


def test_impossible_time_is_rejected():
    errors = validate_dive_data(extract_dive_data("STA dive of 20 minutes at 10m"))
    assert errors == ["Total dive time must be between 30 seconds and 15 minutes"]


def test_bare_duration_is_not_a_dive():
    data = extract_dive_data("I rest 20 minutes between dives")
    assert validate_dive_data(data) == []


def test_overshooting_target_is_rejected():
    errors = validate_dive_data(extract_dive_data("target 30m but reached 45m"))
    assert "Reached depth significantly exceeds target - safety concern" in errors


def test_issue_keywords():
    data = extract_dive_data("I got a squeeze at 35m")
    assert data.issues == ["squeeze"]


# ENCLOSE Diagnostic

def test_equalization_issue():
    result = diagnose("I couldn't equalize, mouthfill ran out")
    assert result.primary_category == "E"
    assert result.confidence == pytest.approx(2 / 6)
    assert result.clear_dive_score is None


def test_matches_sorted_by_confidence():
    result = diagnose("felt dizzy with a long recovery and my mask leak")
    assert [m.category for m in result.all_matches] == ["O", "E2"]


def test_no_match_returns_defaults():
    result = diagnose("it was fine")
    assert result.primary_category == "Unknown"
    assert result.diagnostic_questions == DEFAULT_QUESTIONS


def test_clear_dive_score_counts_flags():
    dive = DiveLog(squeeze=True, blackout=True)
    result = diagnose("cant equalize", dive)
    assert result.clear_dive_score == 2
    assert result.next_steps[-1] == "Consider stepping back depth progression"


def test_clear_dive_score_clean_dive():
    result = diagnose("it was fine", DiveLog(squeeze=False, blackout=False))
    assert result.clear_dive_score == 5
