"""
Unit tests for the extraction prompt.
"""
from receipt_tracker.receipts.pipeline.prompt import CATEGORIES, SYSTEM_PROMPT, build_prompt


class TestBuildPrompt:
    def test_embeds_text_verbatim(self):
        text = 'COSTCO WHOLESALE\n  weird   spacing "quoted"\nTOTAL 12.40'
        prompt = build_prompt(text)
        assert f'"""\n{text}\n"""' in prompt

    def test_lists_every_category(self):
        prompt = build_prompt("TOTAL 1.00")
        for category in CATEGORIES:
            assert category in prompt

    def test_describes_response_shape(self):
        prompt = build_prompt("TOTAL 1.00")
        for key in ("store", "receiptDate", "paymentMethod", "totals", "categoryReceipts", "needsReview"):
            assert f'"{key}"' in prompt

    def test_worked_examples(self):
        prompt = build_prompt("TOTAL 1.00")
        assert "How doers get more" in prompt
        assert "Patient Pays" in prompt
        assert "Adj wrench" in prompt
        assert "26/01/08" in prompt
        assert "6/11/2" in prompt

    def test_reconciliation_rule(self):
        assert "MUST equal totals.total" in build_prompt("TOTAL 1.00")

    def test_no_unfilled_placeholders(self):
        prompt = build_prompt("100% juice")
        assert "%(categories)s" not in prompt
        assert "100% juice" in prompt

    def test_system_prompt(self):
        assert "JSON" in SYSTEM_PROMPT
        assert "slogans" in SYSTEM_PROMPT
