"""
Tests for analysis_node: question turns, knowledge updates and the two
ways a conversation ends (termination phrase, turn bound).
"""
import pytest

from archie.workflows.archie_flow.config import FINAL_AGENT_MESSAGE
from archie.workflows.archie_flow.nodes import analysis_node
from archie.workflows.archie_flow.prompts.analysis import SYSTEM_CONTEXT_HEADER
from archie.workflows.engine import Continue, Suspend

KNOWLEDGE_REPLY = (
    "<agent>Which database backs the billing service?</agent>"
    "<system>{\"entities\": [{\"name\": \"billing\", \"type\": \"service\"}], \"relationships\": []}</system>"
)


def opening_state(**overrides):
    state = {
        "user_input": "Analyze the billing design",
        "analysis_history": [],
        "current_analysis_query": "",
        "inputs": {"overview.md": "Billing writes invoices."},
        "system_context": {"entities": [], "relationships": []},
        "turn_count": 0,
        "model_name": "",
    }
    state.update(overrides)
    return state


def answered_state(answer, **overrides):
    overrides.setdefault("turn_count", 1)
    return opening_state(
        user_input=answer,
        analysis_history=[
            {"role": "user", "content": "Analyze the billing design"},
            {"role": "agent", "content": "Which database?"},
        ],
        current_analysis_query="Which database?",
        **overrides,
    )


# ============================================================================
# Question turns
# ============================================================================

class TestQuestionTurns:

    @pytest.mark.asyncio
    async def test_opening_turn_suspends_with_question(self, services, fake_llm):
        fake_llm.responses = [KNOWLEDGE_REPLY]

        outcome = await analysis_node(opening_state(), services)

        assert isinstance(outcome, Suspend)
        assert outcome.question == "Which database backs the billing service?"
        assert outcome.update["analysis_history"] == [
            {"role": "user", "content": "Analyze the billing design"},
            {"role": "agent", "content": "Which database backs the billing service?"},
        ]
        assert outcome.update["current_analysis_query"] == outcome.question
        assert outcome.update["user_input"] == ""
        assert outcome.update["turn_count"] == 1

    @pytest.mark.asyncio
    async def test_opening_turn_uses_initial_prompt(self, services, fake_llm):
        await analysis_node(opening_state(), services)

        call = fake_llm.calls[0]
        assert "Analyze the billing design" in call["prompt"]
        assert "--- File: overview.md ---" in call["prompt"]
        assert call["history"][0]["role"] == "system"
        assert call["history"][1:] == [{"role": "user", "content": "Analyze the billing design"}]

    @pytest.mark.asyncio
    async def test_answer_uses_followup_prompt(self, services, fake_llm):
        await analysis_node(answered_state("Postgres"), services)

        call = fake_llm.calls[0]
        assert call["prompt"].startswith("Continue the analysis")
        assert call["history"][-1] == {"role": "user", "content": "Postgres"}
        assert len(call["history"]) == 4

    @pytest.mark.asyncio
    async def test_knowledge_update_is_merged(self, services, fake_llm):
        fake_llm.responses = [KNOWLEDGE_REPLY]
        state = opening_state(system_context={
            "entities": [{"name": "postgres", "type": "datastore"}],
            "relationships": [],
        })

        outcome = await analysis_node(state, services)

        names = {e["name"] for e in outcome.update["system_context"]["entities"]}
        assert names == {"postgres", "billing"}

    @pytest.mark.asyncio
    async def test_existing_knowledge_goes_into_system_prompt(self, services, fake_llm):
        state = opening_state(system_context={
            "entities": [{"name": "ledger", "type": "service"}],
            "relationships": [],
        })

        await analysis_node(state, services)

        system_prompt = fake_llm.calls[0]["history"][0]["content"]
        assert SYSTEM_CONTEXT_HEADER in system_prompt
        assert "ledger" in system_prompt

    @pytest.mark.asyncio
    async def test_empty_memory_keeps_base_system_prompt(self, services, fake_llm):
        await analysis_node(opening_state(), services)

        assert SYSTEM_CONTEXT_HEADER not in fake_llm.calls[0]["history"][0]["content"]

    @pytest.mark.asyncio
    async def test_model_override_is_forwarded(self, services, fake_llm):
        await analysis_node(opening_state(model_name="gpt-4o"), services)

        assert fake_llm.calls[0]["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self, services, fake_llm):
        fake_llm.responses = [RuntimeError("rate limited")]

        with pytest.raises(RuntimeError):
            await analysis_node(opening_state(), services)


# ============================================================================
# Ending the conversation
# ============================================================================

class TestConversationEnd:

    @pytest.mark.asyncio
    async def test_termination_phrase_produces_final_output(self, services, fake_llm):
        fake_llm.responses = ["## Summary\nUse Postgres."]

        outcome = await analysis_node(answered_state("Solution approved, thanks"), services)

        assert isinstance(outcome, Continue)
        assert outcome.update["analysis_output"] == "## Summary\nUse Postgres."
        assert outcome.update["analysis_history"] == [
            {"role": "user", "content": "Solution approved, thanks"},
            {"role": "agent", "content": FINAL_AGENT_MESSAGE},
            {"role": "user", "content": "Solution approved, thanks"},
        ]
        assert outcome.update["current_analysis_query"] == ""
        assert "conversation history" in fake_llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_empty_final_output_gets_placeholder(self, services, fake_llm):
        fake_llm.responses = ["   "]

        outcome = await analysis_node(answered_state("okay bye"), services)

        assert outcome.update["analysis_output"] == "No analysis output generated."

    @pytest.mark.asyncio
    async def test_turn_bound_ends_conversation(self, services, fake_llm, test_settings):
        test_settings.ANALYSIS_MAX_TURNS = 1
        fake_llm.responses = ["Final summary"]

        outcome = await analysis_node(answered_state("Postgres"), services)

        assert isinstance(outcome, Continue)
        assert outcome.update["analysis_output"] == "Final summary"

    @pytest.mark.asyncio
    async def test_unbounded_by_default(self, services, fake_llm):
        outcome = await analysis_node(answered_state("Postgres", turn_count=50), services)

        assert isinstance(outcome, Suspend)
