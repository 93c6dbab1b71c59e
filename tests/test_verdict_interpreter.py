import pytest

from com.furia.app.services.verification_system.identity_verification.verdict_interpreter import (
    FreeTextResponse,
    StructuredResponse,
    interpret,
    parse_response,
)


def test_structured_response_is_used_unchanged():
    verdict = interpret('{"match": true, "confidence": 0.92, "reasons": ["faces align"]}')

    assert verdict.match is True
    assert verdict.confidence == 0.92
    assert verdict.reasons == ["faces align"]


def test_structured_response_missing_optional_fields():
    verdict = interpret('{"match": false}')

    assert verdict.match is False
    assert verdict.confidence is None
    assert verdict.reasons is None


def test_structured_confidence_is_not_clamped():
    assert interpret('{"match": true, "confidence": 87}').confidence == 87.0


def test_structured_drops_malformed_optional_fields():
    verdict = interpret('{"match": true, "confidence": "high", "reasons": "same face"}')

    assert verdict.match is True
    assert verdict.confidence is None
    assert verdict.reasons is None


def test_code_fenced_json_is_parsed_as_structured():
    raw = '```json\n{"match": false, "confidence": 0.3, "reasons": ["different jawline"]}\n```'

    response = parse_response(raw)

    assert isinstance(response, StructuredResponse)
    assert response.verdict.match is False


def test_object_without_boolean_match_is_free_text():
    assert isinstance(parse_response('{"confidence": 0.5}'), FreeTextResponse)
    assert isinstance(parse_response('[true, 0.9]'), FreeTextResponse)


@pytest.mark.parametrize("text", [
    "It's a MATCH with confidence 0.8",
    "Existe correspondência entre as imagens",
    "Parece ser a mesma pessoa do documento",
    "no match found",
])
def test_free_text_with_keyword_is_a_match(text):
    assert interpret(text).match is True


def test_free_text_takes_first_decimal_as_confidence():
    verdict = interpret("Match provável, confiança 0.75 (limiar 0.5)")

    assert verdict.match is True
    assert verdict.confidence == 0.75
    assert verdict.reasons is None


def test_free_text_without_keyword_or_number():
    verdict = interpret("Não foi possível analisar as imagens")

    assert verdict.match is False
    assert verdict.confidence == 0
    assert verdict.reasons is None


@pytest.mark.parametrize("text", [
    "não correspondência",
    "Não há correspondência entre os rostos",
    "não é a mesma pessoa",
])
def test_negated_portuguese_keyword_is_not_a_match(text):
    verdict = interpret(text)

    assert verdict.match is False
    assert verdict.confidence == 0


def test_integer_is_not_taken_as_confidence():
    assert interpret("score 92 of 100").confidence == 0


@pytest.mark.parametrize("raw", ["", None, "{", "NaN"])
def test_interpret_never_raises(raw):
    verdict = interpret(raw)

    assert verdict.match is False


def test_truncated_json_falls_back_to_keywords():
    verdict = interpret('{"match": tru')

    assert verdict.match is True
    assert verdict.reasons is None


def test_confidence_too_large_for_float_is_absent():
    verdict = interpret('{"match": true, "confidence": 1' + '0' * 400 + '}')

    assert verdict.match is True
    assert verdict.confidence is None


def test_free_text_decimal_too_large_for_float_is_ignored():
    verdict = interpret("match " + "9" * 400 + ".5")

    assert verdict.match is True
    assert verdict.confidence == 0
