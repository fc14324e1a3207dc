"""
Test: sealed summary tokens — codec, signing, seal/unseal, task ids.
"""
import json
import random
import time

import pytest

from app.core.summary_seal import (
    InvalidSummaryInput,
    TOKEN_PREFIX,
    b64url_decode,
    b64url_encode,
    is_valid_task_id,
    seal_summary,
    sign,
    signatures_match,
    unseal_summary,
)
from app.schemas.summary import SealedSummary

B64URL_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


def _signed_token(secret, payload):
    """Build a correctly signed token around an arbitrary payload"""
    segment = b64url_encode(json.dumps(payload, separators=(",", ":")))
    return f"{TOKEN_PREFIX}.{segment}.{sign(secret, segment)}"


def _mutate(token, index):
    original = token[index]
    replacement = random.choice([c for c in B64URL_ALPHABET if c != original])
    return token[:index] + replacement + token[index + 1:]


class TestBase64Url:
    def test_strips_padding_and_swaps_alphabet(self):
        assert b64url_encode(b"\xfb\xff") == "-_8"
        assert b64url_encode(b"a") == "YQ"

    def test_text_is_utf8(self):
        assert b64url_encode("é") == b64url_encode("é".encode("utf-8"))

    def test_decode_restores_padding(self):
        assert b64url_decode("YQ") == b"a"
        assert b64url_decode("-_8") == b"\xfb\xff"

    def test_empty(self):
        assert b64url_encode(b"") == ""
        assert b64url_decode("") == b""

    def test_rejects_foreign_characters(self):
        assert b64url_decode("ab+c") is None
        assert b64url_decode("ab/c") is None
        assert b64url_decode("YQ==") is None
        assert b64url_decode("a b") is None

    def test_rejects_impossible_length(self):
        assert b64url_decode("abcde") is None

    def test_rejects_non_string(self):
        assert b64url_decode(None) is None


class TestSigner:
    def test_deterministic(self):
        assert sign("k", "message") == sign("k", "message")

    def test_depends_on_secret_and_message(self):
        assert sign("k1", "message") != sign("k2", "message")
        assert sign("k", "message") != sign("k", "messagf")

    def test_is_unpadded_sha256_digest(self):
        signature = sign("k", "message")
        assert len(signature) == 43
        assert len(b64url_decode(signature)) == 32

    def test_signatures_match(self):
        assert signatures_match("abc", "abc")
        assert not signatures_match("abc", "abd")
        assert not signatures_match("abc", "ab")
        assert not signatures_match("abc", "abé")


class TestSeal:
    def test_concrete_scenario(self):
        before = int(time.time() * 1000)
        token = seal_summary("s3cr3t", "u1", "2-1", "hello")
        after = int(time.time() * 1000)

        prefix, payload_segment, signature_segment = token.split(".")
        assert prefix == "SS1"
        assert "=" not in payload_segment and "=" not in signature_segment

        data = json.loads(b64url_decode(payload_segment))
        assert data["v"] == 1
        assert data["uid"] == "u1"
        assert data["taskId"] == "2-1"
        assert data["summary"] == "hello"
        assert before <= data["ts"] <= after

        payload = unseal_summary("s3cr3t", token)
        assert payload == SealedSummary(v=1, uid="u1", taskId="2-1", summary="hello", ts=data["ts"])
        assert unseal_summary("wrong", token) is None

    def test_wire_json_key_order_and_compact_form(self):
        token = seal_summary("k", "u1", "t1", "hi", issued_at_ms=1700000000000)
        raw = b64url_decode(token.split(".")[1]).decode("utf-8")
        assert raw == '{"v":1,"uid":"u1","taskId":"t1","summary":"hi","ts":1700000000000}'

    def test_non_ascii_summary_is_raw_utf8(self):
        token = seal_summary("k", "u1", "t1", "要約です")
        raw = b64url_decode(token.split(".")[1]).decode("utf-8")
        assert '"summary":"要約です"' in raw
        assert unseal_summary("k", token).summary == "要約です"

    @pytest.mark.parametrize("summary", ["a\ud800b", "\udfff", "end \udbff"])
    def test_unpaired_surrogates_escaped_like_json_stringify(self, summary):
        token = seal_summary("k", "u1", "t1", summary, issued_at_ms=1)
        raw = b64url_decode(token.split(".")[1])
        assert "\\ud" in raw.decode("utf-8")
        assert unseal_summary("k", token).summary == summary

    def test_surrogate_escape_matches_js_output(self):
        token = seal_summary("k", "u1", "t1", "a\ud800b", issued_at_ms=1)
        raw = b64url_decode(token.split(".")[1]).decode("utf-8")
        assert raw == '{"v":1,"uid":"u1","taskId":"t1","summary":"a\\ud800b","ts":1}'

    @pytest.mark.parametrize("issued_at_ms", [float("nan"), float("inf"), "1", True])
    def test_bad_timestamp_raises(self, issued_at_ms):
        with pytest.raises(InvalidSummaryInput):
            seal_summary("k", "u1", "t1", "s", issued_at_ms=issued_at_ms)

    def test_empty_summary_allowed(self):
        token = seal_summary("s3cr3t", "u1", "t1", "")
        payload = unseal_summary("s3cr3t", token)
        assert payload is not None
        assert payload.summary == ""

    @pytest.mark.parametrize("secret,user_id,task_id", [
        ("", "u1", "t1"),
        (None, "u1", "t1"),
        ("k", "", "t1"),
        ("k", None, "t1"),
        ("k", "u1", ""),
        ("k", "u1", None),
    ])
    def test_missing_inputs_raise(self, secret, user_id, task_id):
        with pytest.raises(InvalidSummaryInput):
            seal_summary(secret, user_id, task_id, "summary")

    def test_non_string_summary_raises(self):
        with pytest.raises(InvalidSummaryInput):
            seal_summary("k", "u1", "t1", None)

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            seal_summary("", "u1", "t1", "")


class TestUnseal:
    @pytest.mark.parametrize("user_id,task_id,summary", [
        ("u1", "2-1", "hello"),
        ("0f8e2a4c-1111-4a2b-9c3d-abcdefabcdef", "lecture.3:part_2", "line one\nline two"),
        ("user", "t", "\"quoted\" and \\ backslash"),
        ("user", "x" * 64, "🙂 emoji"),
    ])
    def test_round_trip(self, user_id, task_id, summary):
        token = seal_summary("secret", user_id, task_id, summary, issued_at_ms=1234)
        assert unseal_summary("secret", token) == SealedSummary(
            v=1, uid=user_id, taskId=task_id, summary=summary, ts=1234
        )

    def test_tamper_detection(self):
        random.seed(20240601)
        tokens = [
            seal_summary("secret", "u1", "2-1", "hello"),
            seal_summary("secret", "u2", "task:7", "a much longer summary " * 10),
            seal_summary("secret", "u3", "t", ""),
        ]
        mutations = 0
        for token in tokens:
            prefix_len = len(TOKEN_PREFIX) + 1
            positions = [i for i in range(prefix_len, len(token)) if token[i] != "."]
            for index in random.sample(positions, 10):
                assert unseal_summary("secret", _mutate(token, index)) is None
                mutations += 1
        assert mutations >= 20

    def test_wrong_secret(self):
        token = seal_summary("secret-a", "u1", "t1", "hello")
        assert unseal_summary("secret-b", token) is None
        assert unseal_summary("", token) is None

    def test_prefix_enforced(self):
        token = seal_summary("secret", "u1", "t1", "hello")
        assert unseal_summary("secret", "XX1" + token[3:]) is None

    @pytest.mark.parametrize("build", [
        lambda t: ".".join(t.split(".")[:2]),
        lambda t: t + ".extra",
        lambda t: t.replace(".", ""),
    ])
    def test_segment_count_enforced(self, build):
        token = seal_summary("secret", "u1", "t1", "hello")
        assert unseal_summary("secret", build(token)) is None

    def test_empty_or_non_string_token(self):
        assert unseal_summary("secret", "") is None
        assert unseal_summary("secret", None) is None
        assert unseal_summary("secret", 12345) is None

    def test_non_ascii_token_rejected(self):
        token = seal_summary("secret", "u1", "t1", "hello")
        prefix, payload_segment, signature_segment = token.split(".")
        assert unseal_summary("secret", f"{prefix}.{payload_segment}\ud800.{signature_segment}") is None
        assert unseal_summary("secret", f"{prefix}.{payload_segment}.{signature_segment}é") is None

    @pytest.mark.parametrize("payload", [
        {"v": 1, "uid": "u1", "summary": "s", "ts": 1},
        {"v": 2, "uid": "u1", "taskId": "t1", "summary": "s", "ts": 1},
        {"v": True, "uid": "u1", "taskId": "t1", "summary": "s", "ts": 1},
        {"v": 1, "uid": "u1", "taskId": "t1", "summary": 42, "ts": 1},
        {"v": 1, "uid": 7, "taskId": "t1", "summary": "s", "ts": 1},
        {"v": 1, "uid": "u1", "taskId": "t1", "summary": "s", "ts": "1"},
        {"v": 1, "uid": "u1", "taskId": "t1", "summary": "s", "ts": True},
        {"v": 1, "uid": "u1", "taskId": "t1", "summary": "s"},
        ["not", "an", "object"],
        "just a string",
    ])
    def test_signed_but_malformed_payload_rejected(self, payload):
        assert unseal_summary("secret", _signed_token("secret", payload)) is None

    def test_signed_but_not_json_rejected(self):
        segment = b64url_encode("{not json")
        assert unseal_summary("secret", f"SS1.{segment}.{sign('secret', segment)}") is None

    def test_signed_but_not_utf8_rejected(self):
        segment = b64url_encode(b"\xff\xfe\xfd")
        assert unseal_summary("secret", f"SS1.{segment}.{sign('secret', segment)}") is None

    def test_signed_but_undecodable_rejected(self):
        segment = "abcde"
        assert unseal_summary("secret", f"SS1.{segment}.{sign('secret', segment)}") is None

    def test_extra_fields_ignored(self):
        token = _signed_token("secret", {
            "v": 1, "uid": "u1", "taskId": "t1", "summary": "s", "ts": 5, "extra": True
        })
        payload = unseal_summary("secret", token)
        assert payload is not None
        assert payload.task_id == "t1"

    @pytest.mark.parametrize("ts", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_timestamp_rejected(self, ts):
        segment = b64url_encode('{"v":1,"uid":"u1","taskId":"t1","summary":"s","ts":' + ts + "}")
        assert unseal_summary("secret", f"SS1.{segment}.{sign('secret', segment)}") is None

    def test_fractional_timestamp_accepted(self):
        token = _signed_token("secret", {"v": 1, "uid": "u1", "taskId": "t1", "summary": "s", "ts": 1.5})
        assert unseal_summary("secret", token).issued_at_ms == 1.5

    def test_payload_is_immutable(self):
        payload = unseal_summary("secret", seal_summary("secret", "u1", "t1", "s"))
        with pytest.raises(Exception):
            payload.summary = "changed"


class TestTaskIdValidator:
    @pytest.mark.parametrize("task_id", ["2-1", "general-support", "a", "A.b_c:d-9", "x" * 64])
    def test_valid(self, task_id):
        assert is_valid_task_id(task_id)

    @pytest.mark.parametrize("task_id", ["bad id!", "", "x" * 65, "slash/id", "new\nline", "2-1\n", "é"])
    def test_invalid(self, task_id):
        assert not is_valid_task_id(task_id)

    def test_non_string(self):
        assert not is_valid_task_id(None)
        assert not is_valid_task_id(21)

    def test_unseal_does_not_apply_charset(self):
        token = seal_summary("secret", "u1", "bad id!", "s")
        assert unseal_summary("secret", token).task_id == "bad id!"
