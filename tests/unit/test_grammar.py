"""Tests for grammar loading, tokenizing and the leftmost derivation search."""

import pytest

from steptrace.errors import MalformedInstanceError
from steptrace.grammar import ContextFreeGrammar, derive_cfg, load_grammar, tokenize
from steptrace.harness import CFG_AN_BN, CFG_ARITHMETIC, CFG_BALANCED
from steptrace.run_types import EngineConfig


def _first_non_terminal(form, grammar):
    return next(i for i, s in enumerate(form) if s in grammar.non_terminals)


class TestLoadGrammar:
    def test_declared_symbols(self):
        g = load_grammar(CFG_ARITHMETIC)
        assert g.start_symbol == "E"
        assert g.non_terminals == {"E", "T", "F"}
        assert "id" in g.terminals
        assert [str(p) for p in g.expansions("F")] == ["F → ( E )", "F → id"]

    def test_alternatives_map_infers_symbols(self):
        g = load_grammar(CFG_BALANCED)
        assert g.non_terminals == {"S"}
        assert g.terminals == {"(", ")"}
        assert [p.right for p in g.expansions("S")] == [("(", "S", ")"), ("S", "S"), ()]

    def test_compact_right_side_splits_into_symbols(self):
        g = load_grammar(CFG_AN_BN)
        assert [p.right for p in g.productions] == [("a", "S", "b"), ()]
        assert str(g.productions[1]) == "S → ε"

    def test_declared_terminals_keep_multi_character_symbols(self):
        g = load_grammar(
            {
                "startSymbol": "E",
                "terminals": ["id", "+"],
                "rules": {"E": ["id + E", "id"]},
            }
        )
        assert [p.right for p in g.productions] == [("id", "+", "E"), ("id",)]

    def test_loaded_model_passes_through(self):
        g = load_grammar(CFG_AN_BN)
        assert load_grammar(g) is g

    def test_start_symbol_must_be_non_terminal(self):
        with pytest.raises(MalformedInstanceError):
            load_grammar({"startSymbol": "X", "productions": {"S": ["a"]}})

    def test_undeclared_symbol_raises(self):
        with pytest.raises(MalformedInstanceError):
            load_grammar(
                {
                    "terminals": ["a"],
                    "nonTerminals": ["S"],
                    "productions": [{"left": "S", "right": ["a", "b"]}],
                }
            )

    def test_symbol_cannot_be_both_kinds(self):
        with pytest.raises(MalformedInstanceError) as info:
            load_grammar(
                {
                    "terminals": ["S", "a"],
                    "nonTerminals": ["S"],
                    "productions": [{"left": "S", "right": ["a"]}],
                }
            )
        assert info.value.__cause__ is not None

    def test_production_without_left_raises(self):
        with pytest.raises(MalformedInstanceError):
            load_grammar({"productions": [{"right": ["a"]}]})

    @pytest.mark.parametrize("definition", [["S -> a"], "S -> a", None])
    def test_non_mapping_definition_raises(self, definition):
        with pytest.raises(MalformedInstanceError):
            load_grammar(definition)


class TestTokenize:
    def test_longest_terminal_first(self):
        assert tokenize("idi", frozenset({"i", "id"})) == ("id", "i")

    def test_whitespace_is_skipped(self):
        assert tokenize("id + id", frozenset({"id", "+"})) == ("id", "+", "id")

    def test_unknown_character_fails(self):
        assert tokenize("id-id", frozenset({"id", "+"})) is None

    def test_empty_target(self):
        assert tokenize("", frozenset({"a"})) == ()


class TestDeriveCfg:
    def test_an_bn_derivation_steps(self):
        result = derive_cfg(CFG_AN_BN, "ab")
        assert result.derivable is True
        assert result.tokens == ("a", "b")
        assert [s.sentential_form for s in result.steps] == [
            ("S",),
            ("a", "S", "b"),
            ("a", "b"),
        ]
        assert [s.applied_at for s in result.steps] == [None, 0, 1]
        assert result.derivation_length == 2
        assert result.last_step.derived is True

    @pytest.mark.parametrize(
        "text", ["id+id*id", "(id+id)*id", "id+(id*id)", "(id+id)*(id+id)"]
    )
    def test_derivation_is_leftmost_and_ends_at_target(self, text):
        grammar = load_grammar(CFG_ARITHMETIC)
        result = derive_cfg(grammar, text)
        assert result.derivable
        for before, after in zip(result.steps, result.steps[1:]):
            at = _first_non_terminal(before.sentential_form, grammar)
            assert after.applied_at == at
            assert after.production.left == before.sentential_form[at]
            assert after.sentential_form == (
                before.sentential_form[:at]
                + after.production.right
                + before.sentential_form[at + 1 :]
            )
        assert result.last_step.sentential_form == result.tokens

    def test_empty_target_uses_epsilon_production(self):
        result = derive_cfg(CFG_BALANCED, "")
        assert result.derivable
        assert result.last_step.sentential_form == ()
        assert result.last_step.production.right == ()

    @pytest.mark.parametrize("text", ["(()", "())", ")("])
    def test_unbalanced_is_not_derivable(self, text):
        result = derive_cfg(CFG_BALANCED, text)
        assert result.derivable is False
        assert result.step_count == 1
        assert result.last_step.derived is False

    def test_untokenizable_target(self):
        result = derive_cfg(CFG_AN_BN, "abc")
        assert result.derivable is False
        assert result.tokens == ()
        assert result.nodes_explored == 0
        assert result.steps[0].sentential_form == ("S",)

    def test_depth_limit_from_config(self):
        assert derive_cfg(CFG_AN_BN, "aabb").derivation_length == 3
        shallow = derive_cfg(CFG_AN_BN, "aabb", EngineConfig(cfg_max_depth=2))
        assert shallow.derivable is False

    def test_unproductive_grammar_is_pruned(self):
        grammar = {"startSymbol": "S", "productions": {"S": [["S", "a"]]}}
        result = derive_cfg(grammar, "aaa")
        assert result.derivable is False
        assert result.nodes_explored == 0

    def test_left_recursive_grammar_terminates(self):
        grammar = {"startSymbol": "S", "productions": {"S": [["S", "a"], ["a"]]}}
        assert derive_cfg(grammar, "aaaa").derivable
        assert not derive_cfg(grammar, "aab").derivable

    def test_snapshots_are_tuples(self):
        result = derive_cfg(CFG_AN_BN, "aabb")
        assert all(isinstance(s.sentential_form, tuple) for s in result.steps)
        assert isinstance(load_grammar(CFG_AN_BN), ContextFreeGrammar)
