from __future__ import annotations

from fastapi.testclient import TestClient

from planfit.app import app
from planfit.chat.faq import FaqMatcher, load_faqs
from planfit.chat.models import Faq

client = TestClient(app)

FAQS = load_faqs()
MATCHER = FaqMatcher(FAQS)


def test_seed_faqs_load():
    assert [f.id for f in FAQS] == [f"faq-00{i}" for i in range(1, 7)]


def test_faq_endpoint_lists_entries():
    resp = client.get("/faq")
    assert resp.status_code == 200
    assert [f["id"] for f in resp.json()] == [f.id for f in FAQS]


class TestMatching:
    def test_exact_question(self):
        match = MATCHER.match("테더링이 뭔가요?")
        assert match.faq.id == "faq-003"
        assert match.method == "exact"

    def test_exact_ignores_case_and_whitespace(self):
        matcher = FaqMatcher([Faq(id="f", question="What is 5G?", answer="fast")])
        assert matcher.match("  what is 5g?  ").method == "exact"

    def test_variation_contained_in_message(self):
        match = MATCHER.match("혹시 테더링 뜻 알려주실 수 있나요")
        assert match.faq.id == "faq-003"
        assert match.method == "contains"

    def test_keyword(self):
        match = MATCHER.match("핫스팟 켜도 되나요")
        assert match.faq.id == "faq-003"
        assert match.method == "keyword"

    def test_similarity(self):
        matcher = FaqMatcher(
            [
                Faq(id="change", question="요금제 변경은 어떻게 하나요", answer="a"),
                Faq(id="other", question="보관함은 어디 있나요", answer="b"),
            ],
            threshold=0.3,
        )
        match = matcher.match("요금제 변경은 어떻게 해요")
        assert match.faq.id == "change"
        assert match.method == "similarity"
        assert 0.3 <= match.similarity < 1.0

    def test_unrelated_message(self):
        assert MATCHER.match("hello world") is None

    def test_blank_message(self):
        assert MATCHER.match("   ") is None

    def test_no_faqs(self):
        assert FaqMatcher([]).match("테더링이 뭔가요?") is None
