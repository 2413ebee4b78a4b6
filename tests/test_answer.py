"""Unit tests for deterministic answer composition."""

import pytest

from pricebot.answer import NOT_FOUND_MESSAGE, Intent, classify_intent, compose, pick
from pricebot.matcher import match

from conftest import make_product


class TestClassifyIntent:
    @pytest.mark.parametrize(
        "question, intent",
        [
            ("quanto custa um sapatênis", Intent.PRICE_QUERY),
            ("Qual o PREÇO da bota?", Intent.PRICE_QUERY),
            ("qual o valor da camisa", Intent.PRICE_QUERY),
            ("quais os valores das camisas", Intent.PRICE_QUERY),
            ("quantos reais sai a bota", Intent.PRICE_QUERY),
            ("a polo ta custando quanto", Intent.PRICE_QUERY),
            ("quais os preços das bermudas", Intent.PRICE_QUERY),
            ("qual sapatênis mais barato", Intent.CHEAPEST),
            ("bota com menor preço", Intent.CHEAPEST),
            ("qual a bota mais cara", Intent.MOST_EXPENSIVE),
            ("quanto custa o tênis mais caro?", Intent.MOST_EXPENSIVE),
            ("sapatênis de maior preço", Intent.MOST_EXPENSIVE),
            ("tem sapatênis azul", Intent.NONE),
        ],
    )
    def test_classification(self, question, intent):
        assert classify_intent(question) is intent


class TestPick:
    def test_cheapest(self, sapatenis_catalog):
        assert pick(sapatenis_catalog, Intent.CHEAPEST).name == "Sapatênis Verde"
        assert pick(sapatenis_catalog, Intent.PRICE_QUERY).name == "Sapatênis Verde"

    def test_most_expensive(self, sapatenis_catalog):
        assert pick(sapatenis_catalog, Intent.MOST_EXPENSIVE).name == "Sapatênis Azul"

    def test_first_occurrence_wins_ties(self):
        tied = [make_product("Bota A", 100.0), make_product("Bota B", 100.0)]
        assert pick(tied, Intent.MOST_EXPENSIVE).name == "Bota A"
        assert pick(tied, Intent.CHEAPEST).name == "Bota A"

    def test_no_intent(self, sapatenis_catalog):
        assert pick(sapatenis_catalog, Intent.NONE) is None


class TestCompose:
    def test_not_found(self):
        assert compose("quanto custa uma jaqueta", []) == NOT_FOUND_MESSAGE

    def test_price_question_names_cheapest(self, sapatenis_catalog):
        question = "quanto custa um sapatênis"
        answer = compose(question, match(question, sapatenis_catalog))
        lines = answer.split("\n")
        assert lines[0] == "Encontrei algumas opções. A mais barata é:"
        assert lines[1] == "Sapatênis Verde — R$ 80,00"
        assert lines[2] == sapatenis_catalog[1].url

    def test_most_expensive_header(self, sapatenis_catalog):
        answer = compose("qual o sapatênis mais caro", sapatenis_catalog)
        assert answer.split("\n")[:2] == ["Encontrei algumas opções. A mais cara é:", "Sapatênis Azul — R$ 100,00"]

    def test_listing_without_price_intent(self):
        matches = [make_product(f"Camisa {i}", 50.0 + i) for i in range(5)]
        answer = compose("camisa", matches)
        lines = answer.split("\n")
        assert lines[0] == "Encontrei 5 opções:"
        assert lines[1] == "Camisa 0 — R$ 50,00"
        assert lines[2] == matches[0].url
        assert len(lines) == 7
