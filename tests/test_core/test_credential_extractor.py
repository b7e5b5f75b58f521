"""Tests for workflow credential extraction."""

import json

import pytest
from hypothesis import given, strategies as st

from src.core.credential_extractor import (
    ConfigParseError,
    WorkflowConfigError,
    WorkflowTooDeepError,
    analyze_workflow_credentials,
    extract_platforms,
    parse_workflow_config,
    platforms_from_inputs,
    platforms_from_module,
)
from src.core.platforms import CredentialType
from src.models.workflow import StepKind, WorkflowConfig


def extract(config: dict, **kwargs) -> set[str]:
    return extract_platforms(parse_workflow_config(config), **kwargs)


def nested_config(depth: int) -> dict:
    """Config with a single chain of subflows `depth` steps deep."""
    step: dict = {"id": f"s{depth}", "module": "social.twitter.post"}
    for level in range(depth - 1, 0, -1):
        step = {"id": f"s{level}", "steps": [step]}
    return {"steps": [step]}


class TestModuleKeywords:
    """Tests for module path keyword matching."""

    def test_twitter_module(self):
        assert platforms_from_module("social.twitter.postTweet") == {"twitter"}

    def test_claude_maps_to_anthropic(self):
        assert platforms_from_module("ai.anthropic.claude.generate") == {"anthropic"}
        assert platforms_from_module("ai.claude.chat") == {"anthropic"}

    def test_case_insensitive(self):
        assert platforms_from_module("Social.YouTube.Upload") == {"youtube"}

    def test_multiple_keywords(self):
        assert platforms_from_module("bridge.slack_to_discord.forward") == {"slack", "discord"}

    def test_no_keyword(self):
        assert platforms_from_module("utilities.math.add") == set()

    def test_oauth_platform_without_keyword_is_not_matched(self):
        """Only the keyword table is consulted for module paths."""
        assert platforms_from_module("social.linkedin.post") == set()


class TestTemplateReferences:
    """Tests for {{user.<platform>}} references in inputs."""

    def test_duplicates_collapse(self):
        assert platforms_from_inputs("Hello {{user.openai}} and {{user.openai}}") == {"openai"}

    def test_nested_values(self):
        inputs = {
            "headers": {"Authorization": "Bearer {{user.stripe}}"},
            "items": [1, True, None, ["{{user.rapidapi}}"], {"deep": {"x": "{{user.my_api-2}}"}}],
        }
        assert platforms_from_inputs(inputs) == {"stripe", "rapidapi", "my_api-2"}

    def test_non_string_leaves_ignored(self):
        assert platforms_from_inputs({"a": 1, "b": 2.5, "c": False, "d": None}) == set()

    def test_malformed_references_ignored(self):
        text = "{{user.}} {{ user.openai }} {user.openai} {{user.open ai}} {{step.output}}"
        assert platforms_from_inputs(text) == set()

    def test_token_kept_verbatim(self):
        assert platforms_from_inputs("{{user.OpenAI}}") == {"OpenAI"}


class TestExtractPlatforms:
    """Tests for the full tree walk."""

    def test_union_of_both_rules(self):
        config = {
            "steps": [
                {
                    "id": "post",
                    "module": "social.twitter.postTweet",
                    "inputs": {"text": "{{user.openai}}"},
                }
            ]
        }
        assert extract(config) == {"twitter", "openai"}

    def test_dict_inputs_in_every_branch(self):
        """References inside dict inputs are found in steps and both branches."""
        config = {
            "steps": [
                {
                    "id": "s1",
                    "module": "ai.generate",
                    "inputs": {"prompt": "Hello {{user.openai}} and {{user.openai}}"},
                },
                {
                    "id": "check",
                    "then": [{"id": "a", "module": "ai.anthropic.claude.generate"}],
                    "else": [{"id": "b", "inputs": {"k": "{{user.stripe}}"}}],
                },
            ]
        }
        assert extract(config) == {"openai", "anthropic", "stripe"}

    def test_branches_are_walked(self):
        config = {
            "steps": [
                {
                    "id": "check",
                    "type": "condition",
                    "then": [{"id": "a", "module": "social.reddit.post"}],
                    "else": [{"id": "b", "inputs": {"key": "{{user.stripe}}"}}],
                },
                {
                    "id": "loop",
                    "type": "loop",
                    "steps": [{"id": "c", "module": "communication.telegram.send"}],
                },
            ]
        }
        assert extract(config) == {"reddit", "stripe", "telegram"}

    def test_three_levels_deep(self):
        """A step inside then -> steps -> else is found."""
        config = {
            "steps": [
                {
                    "id": "outer",
                    "then": [
                        {
                            "id": "loop",
                            "steps": [
                                {
                                    "id": "inner",
                                    "else": [
                                        {"id": "deep", "module": "dev.github.createIssue"}
                                    ],
                                }
                            ],
                        }
                    ],
                }
            ]
        }
        assert extract(config) == {"github"}

    def test_empty_config(self):
        assert extract({"steps": []}) == set()
        assert extract({}) == set()

    def test_non_step_entries_skipped(self):
        config = {
            "steps": [None, "text", 3, {"id": "ok", "module": "ai.openai.chat", "then": "bad"}]
        }
        assert extract(config) == {"openai"}

    def test_non_string_module_ignored(self):
        assert extract({"steps": [{"id": "x", "module": 42}]}) == set()

    def test_depth_limit(self):
        assert extract(nested_config(5), max_depth=5) == {"twitter"}
        with pytest.raises(WorkflowTooDeepError):
            extract(nested_config(6), max_depth=5)

    def test_accepts_step_sequence(self):
        config = parse_workflow_config({"steps": [{"id": "a", "module": "ai.openai.chat"}]})
        assert extract_platforms(config.steps) == {"openai"}

    @given(
        st.lists(
            st.sampled_from(
                [
                    {"id": "t", "module": "social.twitter.post"},
                    {"id": "o", "inputs": {"k": "{{user.openai}}"}},
                    {"id": "s", "inputs": ["{{user.stripe}}", "{{user.openai}}"]},
                    {"id": "c", "then": [{"id": "g", "module": "dev.github.push"}]},
                    {"id": "p", "module": "utilities.math.add"},
                ]
            ),
            max_size=8,
        ),
        st.randoms(use_true_random=False),
    )
    def test_invariant_under_sibling_reordering(self, steps, rnd):
        """Property test: reordering steps never changes the result."""
        shuffled = list(steps)
        rnd.shuffle(shuffled)

        assert extract({"steps": steps}) == extract({"steps": shuffled})

    @given(st.lists(st.sampled_from(["openai", "stripe", "twitter", "my-api"]), max_size=10))
    def test_duplicate_references_collapse(self, tokens):
        """Property test: the result is exactly the set of referenced tokens."""
        config = {
            "steps": [{"id": str(i), "inputs": {"v": f"{{{{user.{t}}}}}"}} for i, t in enumerate(tokens)]
        }
        assert extract(config) == set(tokens)


class TestParseWorkflowConfig:
    """Tests for parsing persisted configs."""

    def test_parse_text(self):
        raw = json.dumps({"steps": [{"id": "a", "module": "ai.openai.chat"}]})
        config = parse_workflow_config(raw)

        assert isinstance(config, WorkflowConfig)
        assert config.steps[0].module == "ai.openai.chat"

    def test_parse_mapping(self):
        config = parse_workflow_config({"steps": [{"id": "a", "else": [{"id": "b"}]}]})

        assert config.steps[0].kind == StepKind.CONDITIONAL
        assert config.steps[0].else_[0].id == "b"

    def test_malformed_text(self):
        with pytest.raises(ConfigParseError):
            parse_workflow_config("{not json")

    def test_undecodable_bytes(self):
        with pytest.raises(ConfigParseError):
            parse_workflow_config(b'{"steps": "\xff"}')

    def test_non_object_document(self):
        with pytest.raises(WorkflowConfigError):
            parse_workflow_config("[1, 2, 3]")

    def test_step_kinds(self):
        config = parse_workflow_config(
            {
                "steps": [
                    {"id": "plain"},
                    {"id": "cond", "then": []},
                    {"id": "sub", "steps": []},
                    {"id": "both", "then": [], "steps": []},
                ]
            }
        )
        assert [s.kind for s in config.steps] == [
            StepKind.PLAIN,
            StepKind.CONDITIONAL,
            StepKind.SUBFLOW,
            StepKind.CONDITIONAL_SUBFLOW,
        ]


class TestAnalyzeWorkflowCredentials:
    """Tests for required credential listing."""

    def test_required_credentials(self):
        config = {
            "steps": [
                {
                    "id": "post",
                    "module": "social.twitter.postTweet",
                    "inputs": {"text": "{{user.openai}}"},
                }
            ]
        }
        required = analyze_workflow_credentials(config)

        assert [(r.platform, r.type, r.variable) for r in required] == [
            ("openai", CredentialType.API_KEY, "user.openai"),
            ("twitter", CredentialType.OAUTH, "user.twitter"),
        ]

    def test_accepts_text(self):
        raw = '{"steps": [{"id": "a", "inputs": {"k": "{{user.stripe}}"}}]}'
        assert [r.platform for r in analyze_workflow_credentials(raw)] == ["stripe"]
