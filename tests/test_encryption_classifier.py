import random
import unittest

from src.classifier.encryption import (
    EncryptionClassifier,
    FileSample,
    file_type_indicates_encryption,
    find_markers,
    printable_ratio,
)
from src.common.errors import ToolError
from src.common.models import Label, ReasonCode


class _FakeProbe:
    def __init__(self, label: str) -> None:
        self.label = label
        self.calls = []

    def probe(self, path):
        self.calls.append(str(path))
        return self.label


class _BrokenProbe:
    def probe(self, path):
        raise ToolError("Required binary not found: file")


def _random_bytes(size: int, seed: int = 1234) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(256) for _ in range(size))


class EncryptionClassifierTests(unittest.TestCase):
    def setUp(self) -> None:
        self.classifier = EncryptionClassifier()

    def test_enc_marker_is_encrypted(self) -> None:
        sample = FileSample("secret/db.yaml", b"password: ENC[AES256_GCM,data:Zm9v,type:str]\n")
        verdict = self.classifier.classify(sample)
        self.assertEqual(verdict.label, Label.ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.CONTENT_MARKER)
        self.assertTrue(verdict.matched)

    def test_enc_marker_wins_over_printable_ratio_in_reason(self) -> None:
        sample = FileSample("secret/blob.yaml", b"ENC[" + _random_bytes(2000))
        verdict = self.classifier.classify(sample)
        self.assertEqual(verdict.label, Label.ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.CONTENT_MARKER)
        self.assertIn(ReasonCode.LOW_PRINTABLE_RATIO, verdict.signals)

    def test_plain_ascii_is_not_encrypted(self) -> None:
        content = b"username admin\npassword hunter2\nport 5432\n" * 10
        verdict = EncryptionClassifier(_FakeProbe("ASCII text")).classify(FileSample("secret/db.yaml", content))
        self.assertEqual(verdict.label, Label.NOT_ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.NONE)
        self.assertEqual(verdict.signals, ())
        self.assertEqual(verdict.printable_ratio, 1.0)
        self.assertEqual(verdict.file_type, "ASCII text")

    def test_random_bytes_have_low_printable_ratio(self) -> None:
        sample = FileSample("secret/random.yaml", _random_bytes(1000))
        verdict = self.classifier.classify(sample)
        self.assertEqual(verdict.label, Label.ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.LOW_PRINTABLE_RATIO)
        self.assertLess(verdict.printable_ratio, 0.8)

    def test_empty_file_abstains_from_ratio(self) -> None:
        verdict = self.classifier.classify(FileSample("secret/empty.yaml", b""))
        self.assertEqual(verdict.label, Label.NOT_ENCRYPTED)
        self.assertIsNone(verdict.printable_ratio)

    def test_file_type_signature_is_case_insensitive(self) -> None:
        probe = _FakeProbe("GPG symmetrically ENCRYPTED data (AES256 cipher)")
        verdict = EncryptionClassifier(probe).classify(FileSample("secret/db.yaml", b"plain: text\n"))
        self.assertEqual(verdict.label, Label.ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.FILE_TYPE_SIGNATURE)
        self.assertEqual(probe.calls, ["secret/db.yaml"])

    def test_reason_follows_method_order(self) -> None:
        probe = _FakeProbe("data")
        sample = FileSample("secret/db.yaml", b"sops:\n  version: 3.7.3\n")
        verdict = EncryptionClassifier(probe).classify(sample)
        self.assertEqual(verdict.reason, ReasonCode.FILE_TYPE_SIGNATURE)
        self.assertEqual(verdict.signals, (ReasonCode.FILE_TYPE_SIGNATURE, ReasonCode.CONTENT_MARKER))

    def test_probe_failure_propagates(self) -> None:
        classifier = EncryptionClassifier(_BrokenProbe())
        with self.assertRaises(ToolError):
            classifier.classify(FileSample("secret/db.yaml", b"password: hunter2\n"))

    def test_ansible_vault_header(self) -> None:
        sample = FileSample("secret/db.yaml", b"$ANSIBLE_VAULT;1.1;AES256\n6162636465\n")
        verdict = self.classifier.classify(sample)
        self.assertEqual(verdict.label, Label.ENCRYPTED)
        self.assertEqual(verdict.reason, ReasonCode.CONTENT_MARKER)

    def test_ansible_vault_markers_are_anchored_to_line_start(self) -> None:
        anchored = FileSample("secret/a.yaml", b"---\n$ANSIBLE_VAULT;1.1;AES256\n")
        unanchored = FileSample("secret/b.yaml", b"note: encrypt with ansible-vault later\n")
        self.assertEqual(self.classifier.classify(anchored).label, Label.ENCRYPTED)
        self.assertEqual(self.classifier.classify(unanchored).label, Label.NOT_ENCRYPTED)

    def test_markers_are_case_sensitive(self) -> None:
        self.assertEqual(find_markers(b"SOPS: nope\nenc[x]\n"), [])
        self.assertEqual(find_markers(b"-----BEGIN PGP MESSAGE-----\n"), ["pgp-message", "pgp-armor"])
        self.assertEqual(find_markers(b"BEGIN ENCRYPTED MESSAGE"), ["encrypted-message"])

    def test_only_prefix_is_sampled_for_ratio(self) -> None:
        content = b"a" * 1000 + _random_bytes(4000)
        verdict = self.classifier.classify(FileSample("secret/tail.yaml", content))
        self.assertEqual(verdict.printable_ratio, 1.0)
        self.assertNotIn(ReasonCode.LOW_PRINTABLE_RATIO, verdict.signals)

    def test_threshold_and_sample_size_are_configurable(self) -> None:
        content = b"abc\x00\x01" * 10
        sample = FileSample("secret/mixed.yaml", content)
        self.assertEqual(self.classifier.classify(sample).label, Label.ENCRYPTED)
        relaxed = EncryptionClassifier(printable_threshold=0.5)
        self.assertEqual(relaxed.classify(sample).label, Label.NOT_ENCRYPTED)
        tiny = EncryptionClassifier(sample_size=3)
        self.assertEqual(tiny.classify(sample).printable_ratio, 1.0)

    def test_reclassification_is_idempotent(self) -> None:
        sample = FileSample("secret/random.yaml", _random_bytes(1500, seed=7))
        self.assertEqual(self.classifier.classify(sample), self.classifier.classify(sample))


class HelperTests(unittest.TestCase):
    def test_printable_ratio_counts_whitespace(self) -> None:
        self.assertEqual(printable_ratio(b"ab\t\n"), 1.0)
        self.assertEqual(printable_ratio(b"abc\x00"), 0.75)
        self.assertEqual(printable_ratio(b"\x80\xff"), 0.0)
        self.assertIsNone(printable_ratio(b""))

    def test_file_type_keywords(self) -> None:
        self.assertTrue(file_type_indicates_encryption("gzip compressed data"))
        self.assertTrue(file_type_indicates_encryption("Binary blob"))
        self.assertFalse(file_type_indicates_encryption("ASCII text"))
        self.assertFalse(file_type_indicates_encryption("ASCII text", keywords=()))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
