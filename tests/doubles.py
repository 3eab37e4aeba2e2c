from types import SimpleNamespace
from typing import List, Optional

from bson.objectid import ObjectId

from mockly.models.interview import CategoryScore, InterviewFeedback
from mockly.services.speech_io import SpeechChannel
class FakeCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, key, direction):
        self.docs.sort(key=lambda d: d.get(key), reverse=direction == -1)
        return self

    def limit(self, n):
        self.docs = self.docs[:n]
        return self

    def __iter__(self):
        return iter(self.docs)


class FakeCollection:
    """In-memory stand-in for the handful of pymongo calls the app makes"""

    def __init__(self):
        self.docs = []

    def _matches(self, doc, query):
        return all(doc.get(k) == v for k, v in (query or {}).items())

    def insert_one(self, doc):
        stored = dict(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def find_one(self, query):
        for doc in self.docs:
            if self._matches(doc, query):
                return dict(doc)
        return None

    def find(self, query=None):
        return FakeCursor(dict(d) for d in self.docs if self._matches(d, query))


class FakeSpeech(SpeechChannel):
    def __init__(self, transcripts: Optional[List] = None):
        self.spoken: List[str] = []
        self.transcripts = list(transcripts or [])
        self.stop_speaking_calls = 0
        self.stop_listening_calls = 0
        self.last_path = None

    async def speak(self, text):
        self.spoken.append(text)
        self.last_path = "cartesia"
        return "cartesia"

    async def listen(self):
        item = self.transcripts.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def stop_speaking(self):
        self.stop_speaking_calls += 1

    async def stop_listening(self):
        self.stop_listening_calls += 1


class FakeInterviewLLM:
    def __init__(self, greeting="Hello, I'm your interviewer. What's your name and target role?",
                 greeting_reply="Nice to meet you. What is your experience level?",
                 preliminary_replies=None):
        self.greeting = greeting
        self.greeting_reply = greeting_reply
        self.preliminary_replies = list(preliminary_replies or [])
        self.question_calls = []

    async def generate_greeting(self):
        return self.greeting

    async def generate_greeting_reply(self, answer):
        return self.greeting_reply

    async def generate_preliminary_reply(self, answer, history, candidate):
        reply = self.preliminary_replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def generate_interview_question(self, role, experience_level, tech_stack,
                                          previous_answers=None, question_number=1, total_questions=5):
        self.question_calls.append({
            "role": role,
            "experience_level": experience_level,
            "tech_stack": tech_stack,
            "previous_answers": list(previous_answers or []),
            "question_number": question_number,
            "total_questions": total_questions,
        })
        return f"Question {question_number}: how would you approach this?"


def make_feedback(*scores):
    return InterviewFeedback(
        total_score=0,
        category_scores=[CategoryScore(name=f"Category {i}", score=s, comment="ok") for i, s in enumerate(scores)],
        strengths=["Clear answers"],
        areas_for_improvement=["More depth"],
        final_assessment="Solid",
    )


class FakeFeedbackGenerator:
    def __init__(self, results=None):
        self.results = list(results or [make_feedback(80, 85)])
        self.calls = []

    async def generate(self, history, role, level, tech_stack):
        self.calls.append({"history": list(history), "role": role, "level": level, "tech_stack": tech_stack})
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class EventRecorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event, payload):
        self.events.append((event, payload))

    def names(self):
        return [name for name, _ in self.events]

    def of(self, name):
        return [payload for event, payload in self.events if event == name]
