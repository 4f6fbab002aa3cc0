from __future__ import annotations

import tests._path_setup  # noqa: F401

import unittest

from push_to_file.domain.secret import Secret
from push_to_file.errors import Base64DecodeError, TemplateEvalError, UnknownAliasError
from push_to_file.template_funcs import b64dec, b64enc, make_secret_func, template_funcs


class TemplateFuncsTest(unittest.TestCase):
    def test_b64enc_uses_standard_padded_alphabet(self) -> None:
        self.assertEqual(b64enc("hello"), "aGVsbG8=")
        self.assertEqual(b64enc(b"\xfb\xff"), "+/8=")
        self.assertEqual(b64enc(""), "")

    def test_b64dec_decodes_standard_encoding(self) -> None:
        self.assertEqual(b64dec("aGVsbG8="), "hello")
        self.assertEqual(b64dec(b"czNjcjN0"), "s3cr3t")

    def test_b64dec_round_trips_b64enc(self) -> None:
        for value in ("", "a", "pässwörd", "line1\nline2", "x" * 1000):
            self.assertEqual(b64dec(b64enc(value)), value)

    def test_b64dec_rejects_malformed_input(self) -> None:
        for bad in ("not base64!", "aGVsbG8", "a===", "%%%%"):
            with self.assertRaises(Base64DecodeError) as ctx:
                b64dec(bad)
            self.assertEqual(ctx.exception.value, bad)
            self.assertIsInstance(ctx.exception, TemplateEvalError)

    def test_b64dec_masks_long_input_in_message(self) -> None:
        bad = "sup3r-s3cret-value!"
        with self.assertRaises(Base64DecodeError) as ctx:
            b64dec(bad)
        self.assertNotIn(bad, str(ctx.exception))
        self.assertIn("sup3...lue!", str(ctx.exception))

    def test_secret_returns_value_for_alias(self) -> None:
        secret = make_secret_func({"user": Secret("user", "alice")})
        self.assertEqual(secret("user"), "alice")

    def test_secret_unknown_alias_names_alias(self) -> None:
        secret = make_secret_func({})
        with self.assertRaises(UnknownAliasError) as ctx:
            secret("missing")
        self.assertEqual(ctx.exception.alias, "missing")
        self.assertIn("missing", str(ctx.exception))

    def test_template_funcs_exposes_exactly_three_helpers(self) -> None:
        self.assertEqual(sorted(template_funcs({})), ["b64dec", "b64enc", "secret"])


if __name__ == "__main__":
    unittest.main()
