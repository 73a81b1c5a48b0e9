"""End-to-end tests for the logging orchestrator."""

import asyncio
from dataclasses import dataclass, field
from uuid import uuid4

import pytest

from food_logger.domain.aliases import Alias
from food_logger.domain.products import Product
from food_logger.domain.resolution import (
    InputAnswer,
    InputKind,
    InputRequest,
    LogResult,
)
from food_logger.errors import InvalidAnswerError, UnknownSessionError
from food_logger.services.nutrients import MACROS_UNAVAILABLE_NOTE
from tests.conftest import (
    TODAY,
    FakeParserClient,
    FakeProvider,
    build_harness,
    make_product,
)


@dataclass
class QueryProvider:
    """Provider answering only the queries it knows."""

    source: str = "off"
    answers: dict[str, list[Product]] = field(default_factory=dict)
    queries: list[str] = field(default_factory=list)

    async def search(self, query: str) -> list[Product]:
        self.queries.append(query)
        return self.answers.get(query, [])


def _parsed(*items: dict[str, object]) -> FakeParserClient:
    return FakeParserClient(payload={"items": list(items)})


def _partial(source_id: str, name: str) -> Product:
    return make_product(
        source_id, name, nutrients={"energy-kcal_100g": 80, "proteins_100g": 10}
    )


def test_alias_with_grams_override_skips_parser_and_search() -> None:
    harness = build_harness()
    harness.product_repository.put_product(make_product("1", "Skyr"))
    harness.alias_repository.upsert_alias(
        Alias(user_phrase="my skyr", product_id="off:1", grams_override=150)
    )

    result = asyncio.run(harness.service.log_text("  My   SKYR "))

    assert isinstance(result, LogResult)
    assert harness.parser_client.calls == []
    assert harness.provider.queries == []
    item = result.items[0]
    assert item.product_id == "off:1"
    assert item.grams == 150
    assert item.macros.kcal == 150
    assert item.confidence == 1.0
    assert result.totals.kcal == 150
    assert result.entry is not None
    assert result.entry.text_raw == "My   SKYR"


def test_alias_serving_label_supplies_grams() -> None:
    harness = build_harness()
    harness.product_service.save(make_product("1", "Bar", default_serving_g=45))
    harness.alias_repository.upsert_alias(
        Alias(user_phrase="bar", product_id="off:1", serving_label="Serving")
    )

    result = asyncio.run(harness.service.log_text("bar"))

    assert isinstance(result, LogResult)
    assert result.items[0].grams == 45


def test_alias_without_grams_asks_and_rounds_answer() -> None:
    harness = build_harness()
    harness.product_repository.put_product(make_product("1", "Skyr"))
    harness.alias_repository.upsert_alias(Alias(user_phrase="skyr", product_id="off:1"))

    request = asyncio.run(harness.service.log_text("skyr"))
    assert isinstance(request, InputRequest)
    assert request.kind == InputKind.GRAMS

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(grams=149.5))
    )

    assert isinstance(result, LogResult)
    assert result.items[0].grams == 150
    assert harness.parser_client.calls == []


def test_interactive_grams_have_a_minimum_of_one() -> None:
    harness = build_harness()
    harness.product_repository.put_product(make_product("1", "Salt"))
    harness.alias_repository.upsert_alias(Alias(user_phrase="salt", product_id="off:1"))

    request = asyncio.run(harness.service.log_text("salt"))
    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(grams=0.2))
    )

    assert isinstance(result, LogResult)
    assert result.items[0].grams == 1


def test_parser_offline_falls_back_to_manual_entry() -> None:
    harness = build_harness(parser_client=FakeParserClient(fail=True))

    request = asyncio.run(harness.service.log_text("200 g skyr"))

    assert isinstance(request, InputRequest)
    assert request.kind == InputKind.MANUAL_ENTRY
    assert request.quick_grams == [200.0]
    assert request.suggestion == "200 g skyr"
    assert harness.provider.queries == []

    result = asyncio.run(
        harness.service.resume(
            request.session_id,
            InputAnswer(name="Skyr", kcal=126, protein_g=22.0, save_alias=True),
        )
    )

    assert isinstance(result, LogResult)
    item = result.items[0]
    assert item.grams == 200
    assert item.notes == "manual"
    assert item.confidence == 1.0
    assert result.totals.kcal == 126
    assert result.totals.protein_g == 22.0
    assert result.totals.carbs_g == 0.0
    assert result.alias_saved
    alias = harness.alias_repository.aliases["200 g skyr"]
    assert alias.grams_override is None
    product = harness.product_repository.products[alias.product_id]
    assert product.source == "custom"
    assert product.nutrients == {"energy-kcal_100g": 63.0, "proteins_100g": 11.0}


def test_manual_entry_can_bind_grams_to_alias() -> None:
    harness = build_harness(parser_client=FakeParserClient(fail=True))
    request = asyncio.run(harness.service.log_text("protein shake"))

    asyncio.run(
        harness.service.resume(
            request.session_id,
            InputAnswer(
                name="Shake", grams=330, kcal=200, save_alias=True, bind_grams=True
            ),
        )
    )

    assert harness.alias_repository.aliases["protein shake"].grams_override == 330


def test_manual_entry_cancel_logs_nothing() -> None:
    harness = build_harness(parser_client=FakeParserClient(fail=True))
    request = asyncio.run(harness.service.log_text("skyr"))

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(cancel=True))
    )

    assert isinstance(result, LogResult)
    assert result.entry is None
    assert harness.log_repository.entries == {}


def test_auto_resolution_learns_alias_for_repeat_phrase() -> None:
    provider = FakeProvider(source="off", products=[make_product("1", "Skyr")])
    harness = build_harness(
        provider=provider, parser_client=_parsed({"name": "skyr", "grams": 150})
    )

    first = asyncio.run(harness.service.log_text("150 g skyr"))
    second = asyncio.run(harness.service.log_text("150 G  Skyr"))

    assert isinstance(first, LogResult)
    assert first.alias_saved
    assert first.items[0].macros.kcal == 150
    assert isinstance(second, LogResult)
    assert second.items[0].product_id == "off:1"
    assert second.items[0].grams == 150
    assert len(harness.parser_client.calls) == 1
    assert provider.queries == ["skyr"]
    assert second.totals.kcal == 300


def test_one_entry_per_phrase_and_no_alias_for_multi_item() -> None:
    provider = QueryProvider(
        answers={
            "skyr": [make_product("1", "skyr")],
            "banana": [make_product("2", "banana", source="fdc")],
        }
    )
    harness = build_harness(
        provider=provider,
        parser_client=_parsed(
            {"name": "skyr", "grams": 150}, {"name": "banana", "grams": 120}
        ),
    )

    result = asyncio.run(harness.service.log_text("skyr + banana"))

    assert isinstance(result, LogResult)
    assert [item.product_id for item in result.items] == ["off:1", "fdc:2"]
    assert len(harness.log_repository.entries) == 1
    assert {item.entry_id for item in result.items} == {result.entry.id}
    assert not result.alias_saved
    assert harness.alias_repository.aliases == {}


def test_missing_grams_suspend_per_item() -> None:
    provider = FakeProvider(source="off", products=[make_product("1", "oats")])
    harness = build_harness(provider=provider, parser_client=_parsed({"name": "oats"}))

    request = asyncio.run(harness.service.log_text("oats"))
    assert isinstance(request, InputRequest)
    assert request.kind == InputKind.GRAMS
    assert provider.queries == []

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(grams=80.4))
    )

    assert isinstance(result, LogResult)
    assert result.items[0].grams == 80
    assert result.items[0].macros.kcal == 80


def test_cancel_skips_only_current_item() -> None:
    provider = QueryProvider(
        answers={
            "oats": [make_product("1", "oats")],
            "milk": [make_product("2", "milk")],
        }
    )
    harness = build_harness(
        provider=provider,
        parser_client=_parsed({"name": "oats"}, {"name": "milk", "grams": 200}),
    )

    request = asyncio.run(harness.service.log_text("oats + 200 ml milk"))
    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(cancel=True))
    )

    assert isinstance(result, LogResult)
    assert [item.product_id for item in result.items] == ["off:2"]


def test_disambiguation_logs_choice_and_learns_alias() -> None:
    provider = FakeProvider(
        source="off", products=[_partial("1", "skyr"), _partial("2", "skyr")]
    )
    harness = build_harness(
        provider=provider, parser_client=_parsed({"name": "skyr", "grams": 100})
    )

    request = asyncio.run(harness.service.log_text("skyr"))

    assert isinstance(request, InputRequest)
    assert request.kind == InputKind.DISAMBIGUATION
    assert [choice.product.id for choice in request.choices] == ["off:1", "off:2"]
    assert request.choices[0].confidence == pytest.approx(0.70)

    with pytest.raises(InvalidAnswerError):
        asyncio.run(
            harness.service.resume(request.session_id, InputAnswer(choice_index=5))
        )

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(choice_index=1))
    )

    assert isinstance(result, LogResult)
    assert result.items[0].product_id == "off:2"
    assert result.items[0].confidence == pytest.approx(0.70)
    assert harness.alias_repository.aliases["skyr"] == Alias(
        user_phrase="skyr", product_id="off:2", grams_override=100
    )


def test_unresolved_after_correction_logs_placeholder() -> None:
    harness = build_harness(
        provider=QueryProvider(),
        parser_client=_parsed({"name": "mystery", "grams": 90}),
    )

    request = asyncio.run(harness.service.log_text("90 g mystery"))
    assert isinstance(request, InputRequest)
    assert request.kind == InputKind.CORRECTION
    assert request.choices == []

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(phrase="odd thing"))
    )

    assert isinstance(result, LogResult)
    item = result.items[0]
    assert item.product_id.startswith("parsed:")
    assert item.notes == "unresolved"
    assert item.confidence == 0.3
    assert item.grams == 90
    assert item.macros.kcal is None
    assert result.totals.kcal == 0
    assert harness.provider.queries == ["mystery", "odd thing"]


def test_correction_retry_can_resolve() -> None:
    provider = QueryProvider(answers={"Quest Bar": [make_product("q", "quest bar")]})
    harness = build_harness(
        provider=provider, parser_client=_parsed({"name": "qb", "grams": 60})
    )

    request = asyncio.run(harness.service.log_text("qb"))
    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(phrase="Quest Bar"))
    )

    assert isinstance(result, LogResult)
    assert result.items[0].product_id == "off:q"
    assert harness.alias_repository.aliases["qb"].product_id == "off:q"


def test_missing_energy_is_noted_and_adds_zero() -> None:
    product = make_product(
        "1",
        "bar",
        nutrients={
            "energy-kcal_serving": 200,
            "proteins_serving": 20,
            "carbohydrates_serving": 20,
            "fat_serving": 5,
        },
    )
    harness = build_harness(
        provider=FakeProvider(source="off", products=[product]),
        parser_client=_parsed({"name": "bar", "grams": 50}),
    )

    result = asyncio.run(harness.service.log_text("bar"))

    assert isinstance(result, LogResult)
    assert result.items[0].macros.kcal is None
    assert result.items[0].notes == MACROS_UNAVAILABLE_NOTE
    assert result.totals.kcal == 0


def test_barcode_logging_asks_for_grams_with_quick_choices() -> None:
    harness = build_harness()
    product = make_product(
        "5449000000996", "Cola", barcode="5449000000996", default_serving_g=330
    )
    harness.barcode_lookup.products["5449000000996"] = product

    request = asyncio.run(harness.service.log_barcode("5449000000996"))

    assert isinstance(request, InputRequest)
    assert request.quick_grams == [100.0, 330.0, 250.0]

    result = asyncio.run(
        harness.service.resume(request.session_id, InputAnswer(grams=330))
    )

    assert isinstance(result, LogResult)
    assert result.entry is not None
    assert result.entry.text_raw == "barcode:5449000000996"
    assert result.entry.date_local == TODAY
    assert result.items[0].macros.kcal == 330
    assert result.items[0].confidence == 1.0


def test_resume_consumes_session() -> None:
    harness = build_harness(parser_client=FakeParserClient(fail=True))
    request = asyncio.run(harness.service.log_text("skyr"))
    asyncio.run(harness.service.resume(request.session_id, InputAnswer(cancel=True)))

    with pytest.raises(UnknownSessionError):
        asyncio.run(harness.service.resume(request.session_id, InputAnswer()))


def test_unknown_session_raises() -> None:
    harness = build_harness()

    with pytest.raises(UnknownSessionError):
        asyncio.run(harness.service.resume(uuid4(), InputAnswer(grams=100)))


def test_empty_phrase_is_rejected() -> None:
    harness = build_harness()

    with pytest.raises(ValueError):
        asyncio.run(harness.service.log_text("   "))
