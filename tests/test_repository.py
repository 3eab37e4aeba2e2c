from datetime import datetime, timedelta

from mockly.models.interview import CategoryScore, CompletedInterviewCreate, Message
from mockly.services.interview_repository import InterviewRepository


def make_record(**overrides):
    data = dict(
        interview_id="iv-1",
        candidate_name="Dana",
        target_role="Backend Engineer",
        experience_level="Senior",
        tech_stack=["Python"],
        total_score=10,
        category_scores=[CategoryScore(name="Technical Knowledge", score=90), CategoryScore(name="Overall Fit", score=75)],
        strengths=["Depth"],
        areas_for_improvement=["Brevity"],
        final_assessment="Strong hire",
        conversation_history=[Message(role="assistant", content="Hi"), Message(role="user", content="Hello")],
        duration=12,
    )
    data.update(overrides)
    return CompletedInterviewCreate(**data)


def test_save_recomputes_total_and_stores_camel_case(collection):
    result = InterviewRepository(collection).save("user-1", make_record())

    assert result.success is True
    assert result.message == "Interview saved successfully"
    doc = collection.docs[0]
    assert str(doc["_id"]) == result.interview_id
    assert doc["totalScore"] == 83
    assert doc["userId"] == "user-1"
    assert isinstance(doc["completedAt"], datetime)
    assert doc["conversationHistory"][1]["content"] == "Hello"
    assert "candidate_name" not in doc


def test_owner_can_read_record_back(collection):
    repository = InterviewRepository(collection)
    interview_id = repository.save("user-1", make_record()).interview_id

    record = repository.get_by_id(interview_id, "user-1")

    assert record.id == interview_id
    assert record.candidate_name == "Dana"
    assert record.total_score == 83


def test_non_owner_and_malformed_ids_are_not_found(collection):
    repository = InterviewRepository(collection)
    interview_id = repository.save("user-1", make_record()).interview_id

    assert repository.get_by_id(interview_id, "user-2") is None
    assert repository.get_by_id("not-an-object-id", "user-1") is None
    assert repository.get_by_id("64b7f0c2a1b2c3d4e5f60718", "user-1") is None


def test_list_returns_newest_first_and_is_capped(collection):
    repository = InterviewRepository(collection)
    for i in range(12):
        repository.save("user-1", make_record(interview_id=f"iv-{i}"))
    repository.save("user-2", make_record(interview_id="someone-else"))
    base = datetime(2024, 1, 1)
    for i, doc in enumerate(collection.docs):
        doc["completedAt"] = base + timedelta(minutes=i)

    records = repository.list_for_user("user-1")

    assert len(records) == 10
    assert records[0].interview_id == "iv-11"
    assert all(r.user_id == "user-1" for r in records)
