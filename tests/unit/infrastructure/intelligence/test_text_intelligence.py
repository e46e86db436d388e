import pytest

from leadintel.infrastructure.intelligence.text_intelligence import TextIntelligenceEngine


@pytest.fixture
def engine():
    return TextIntelligenceEngine()


def signal_types(analysis):
    return {signal.type for signal in analysis.buying_signals}


# --- Sentiment ---

def test_positive_sentiment(engine):
    analysis = engine.analyze("This is great, I love the product and the team has been really helpful.")
    assert analysis.sentiment.overall == "positive"
    assert analysis.sentiment.score > 0.2
    assert 0.0 < analysis.sentiment.confidence <= 1.0


def test_negative_sentiment_raises_risk_flag(engine):
    analysis = engine.analyze("I am frustrated and disappointed, the onboarding was terrible.")
    assert analysis.sentiment.overall == "negative"
    assert analysis.sentiment.score < -0.2
    assert analysis.sentiment.confidence >= 0.7
    assert "High negative sentiment detected" in analysis.risk_flags
    assert "Address concerns and objections proactively" in analysis.recommendations
    assert "Address concerns immediately" in analysis.next_best_actions


@pytest.mark.parametrize("text, overall", [
    ("amazing! love it! fantastic! great!", "positive"),
    ("terrible! awful! I hate it!", "negative"),
])
def test_single_polarity_text_is_confident(engine, text, overall):
    sentiment = engine.analyze_sentiment(text)
    assert sentiment.overall == overall
    assert sentiment.confidence > 0.5
    assert (sentiment.score > 0) if overall == "positive" else (sentiment.score < 0)


def test_neutral_sentiment(engine):
    analysis = engine.analyze("We had a meeting on Tuesday to go over the agenda.")
    assert analysis.sentiment.overall == "neutral"
    assert analysis.sentiment.score == 0.0


def test_mixed_sentiment_is_neutral(engine):
    analysis = engine.analyze("The reports are great but the export is terrible.")
    assert analysis.sentiment.overall == "neutral"
    assert analysis.sentiment.score == 0.0
    assert analysis.sentiment.confidence > 0.0


# --- Intent and urgency ---

@pytest.mark.parametrize("text, expected", [
    ("We are ready to buy and want to move forward.", "purchase"),
    ("I want to buy your product, how can I purchase it?", "purchase"),
    ("Could you show me a demo of the reporting module?", "demo"),
    ("How much does the enterprise plan cost?", "pricing"),
    ("We are evaluating a few tools this quarter.", "evaluate"),
    ("Can you explain the onboarding process?", "information"),
])
def test_intent_detection(engine, text, expected):
    intent = engine.analyze_intent(text)
    assert intent.primary_intent == expected
    assert intent.confidence > 0.0


def test_no_intent_defaults_to_general(engine):
    intent = engine.analyze_intent("The weather was nice on Tuesday.")
    assert intent.primary_intent == "general"
    assert intent.confidence == 0.0


def test_purchase_wins_over_later_groups(engine):
    intent = engine.analyze_intent("We want to buy, but what does the price look like?")
    assert intent.primary_intent == "purchase"


@pytest.mark.parametrize("text, urgency", [
    ("We need this urgently, our deadline is Friday.", "high"),
    ("Can we wrap this up soon?", "medium"),
    ("Let's talk at some point.", "low"),
])
def test_urgency_levels(engine, text, urgency):
    assert engine.analyze_intent(text).urgency == urgency


# --- Buying signals ---

def test_budget_signal_with_currency_amount(engine):
    analysis = engine.analyze("We have a budget of $50,000 for this project.")
    budget = [s for s in analysis.buying_signals if s.type == "budget_mentioned"]
    evidence = {s.evidence for s in budget}
    assert "$50,000" in evidence
    assert "budget" in evidence
    # The amount is the stronger evidence and is ranked first.
    assert budget[0].evidence == "$50,000"
    assert "Align the proposal with their stated budget" in analysis.recommendations


def test_timeline_signal(engine):
    analysis = engine.analyze("We plan to launch next quarter.")
    assert "timeline_discussed" in signal_types(analysis)
    assert any(s.evidence == "next quarter" for s in analysis.buying_signals)


def test_decision_maker_signal(engine):
    analysis = engine.analyze("I need to run this by my boss and the CFO.")
    assert "decision_maker_involved" in signal_types(analysis)


def test_competitor_signal_raises_risk_flag(engine):
    analysis = engine.analyze("We are also comparing you with a competitor.")
    assert "competitor_comparison" in signal_types(analysis)
    assert "Actively comparing with competitors" in analysis.risk_flags


def test_pain_point_signal(engine):
    analysis = engine.analyze("Our current process is inefficient and we struggle with reporting.")
    assert "pain_point_expressed" in signal_types(analysis)
    assert "Tie the solution directly to the pain points they described" in analysis.recommendations


def test_repeated_phrase_is_one_signal_with_higher_confidence(engine):
    once = engine.extract_buying_signals("Our budget is fixed.")
    twice = engine.extract_buying_signals("Our budget is fixed. The budget was approved.")
    assert len([s for s in twice if s.evidence.lower() == "budget"]) == 1
    assert twice[0].confidence > once[0].confidence


def test_signals_are_ordered_by_confidence(engine):
    signals = engine.extract_buying_signals("We have a budget of $20k and need it by next month.")
    confidences = [s.confidence for s in signals]
    assert confidences == sorted(confidences, reverse=True)


# --- Topics and entities ---

def test_keywords_ranked_by_frequency(engine):
    topics = engine.extract_topics("Integration integration pricing support")
    assert topics.keywords == ("integration", "pricing", "support")
    assert topics.main_topics == ("integration", "pricing", "support")


def test_keywords_skip_stopwords(engine):
    keywords = engine.extract_keywords("we would like to know about the dashboard")
    assert keywords == ("dashboard",)


def test_entity_extraction(engine):
    entities = engine.extract_entities("I spoke with John Smith from Acme Corp yesterday.")
    assert entities.people == ("John Smith",)
    assert entities.organizations == ("Acme Corp",)


def test_entities_do_not_span_lines(engine):
    entities = engine.extract_entities("Thanks John\nSarah Connor will follow up.")
    assert "Sarah Connor" in entities.people
    assert all("\n" not in person for person in entities.people)


# --- Derived recommendations and actions ---

def test_positive_demo_request(engine):
    analysis = engine.analyze("This looks great, can we schedule a demo?")
    assert analysis.sentiment.overall == "positive"
    assert analysis.intent.primary_intent == "demo"
    assert "Schedule a personalized demo session" in analysis.recommendations
    assert "Strike while the iron is hot and accelerate the engagement" in analysis.recommendations
    assert "Schedule a product demo" in analysis.next_best_actions


def test_purchase_with_budget_closes_the_deal(engine):
    analysis = engine.analyze("We are ready to buy, our budget is $20k.")
    assert analysis.intent.primary_intent == "purchase"
    assert analysis.next_best_actions[:2] == ("Send contract and close the deal", "Schedule implementation kickoff")
    assert "Prepare contract and pricing information" in analysis.recommendations


def test_low_engagement(engine):
    analysis = engine.analyze("Hello there.")
    assert "Low engagement and buying intent" in analysis.risk_flags
    assert "Send educational content" in analysis.next_best_actions
    assert "Schedule a discovery call" in analysis.next_best_actions


def test_rule_messages_are_not_duplicated(engine):
    analysis = engine.analyze("We are ready to buy. Our budget is $80k, we need it by next month and my CFO agrees.")
    assert len(analysis.next_best_actions) == len(set(analysis.next_best_actions))
    assert analysis.next_best_actions.count("Send contract and close the deal") == 1


# --- Edge cases ---

def test_empty_text(engine):
    analysis = engine.analyze("")
    assert analysis.sentiment.overall == "neutral"
    assert analysis.sentiment.confidence == 0.0
    assert analysis.intent.primary_intent == "general"
    assert analysis.buying_signals == ()
    assert analysis.topics.keywords == ()
    assert analysis.topics.entities.people == ()


def test_very_short_text(engine):
    analysis = engine.analyze("ok")
    assert analysis.sentiment.overall == "neutral"
    assert analysis.buying_signals == ()


def test_long_text(engine):
    text = "The platform is great and our budget is approved. " * 500
    analysis = engine.analyze(text)
    assert analysis.sentiment.overall == "positive"
    assert "budget_mentioned" in signal_types(analysis)
    assert len(analysis.topics.keywords) <= 10


def test_analysis_is_deterministic(engine):
    text = "John Smith from Acme Corp said the pricing looks good, and they need it by next month."
    assert engine.analyze(text) == engine.analyze(text)
    assert engine.analyze(text).to_dict() == TextIntelligenceEngine().analyze(text).to_dict()


def test_shouted_text_is_not_a_person(engine):
    entities = engine.extract_entities("ASAP WE NEED THIS. Maria Lopez from IBM Corp agreed.")
    assert entities.people == ("Maria Lopez",)
    assert entities.organizations == ("IBM Corp",)
