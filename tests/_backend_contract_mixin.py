from __future__ import annotations

import csv
import json
import tempfile
from pathlib import Path
from typing import Any

from embedstore import (
    CodecError,
    DimensionMismatchError,
    Document,
    StorageError,
    decode_vector,
    encode_vector,
    read_jsonl,
)


class BackendContractMixin:
    """Behavior every storage backend must share. Subclasses provide `open_backend`."""

    backend_suffix: str

    def open_backend(self, path: Path) -> Any:
        raise NotImplementedError

    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp_dir = Path(tmp.name)
        self.path = self.tmp_dir / f"store{self.backend_suffix}"
        self.backend = self.open_backend(self.path)
        self.addCleanup(self.backend.close)

    def _seed_languages(self) -> None:
        self.backend.add_document("a", "hello", [1.0, 0.0, 0.0], {"lang": "en"})
        self.backend.add_document("b", "bonjour", [0.0, 1.0, 0.0], {"lang": "fr"})
        self.backend.add_document("c", "hi there", [0.5, 0.5, 0.0], {"lang": "en", "topic": "greet"})

    def test_two_document_scenario(self) -> None:
        self.backend.add_document("first", "first text", [1, 0, 0])
        self.backend.add_document("second", "second text", [0, 1, 0])

        top = self.backend.search([1, 0, 0], top_k=1)
        self.assertEqual([hit.id for hit in top], ["first"])
        self.assertAlmostEqual(top[0].score, 1.0, places=6)
        self.assertEqual(top[0].text, "first text")

        both = self.backend.search([0.7, 0.7, 0], top_k=2)
        self.assertEqual([hit.id for hit in both], ["first", "second"])
        for hit in both:
            self.assertAlmostEqual(hit.score, 0.7071067811865476, places=6)

    def test_add_and_get_document(self) -> None:
        self.backend.add_document("doc1", "Test document", [0.5, 0.25, 2.0], {"category": "test"})

        document = self.backend.get_document("doc1")

        self.assertIsInstance(document, Document)
        self.assertEqual(document.id, "doc1")
        self.assertEqual(document.text, "Test document")
        self.assertEqual(dict(document.metadata), {"category": "test"})
        self.assertEqual(document.embedding, (0.5, 0.25, 2.0))
        self.assertEqual(document.dimension, 3)
        self.assertIsNone(self.backend.get_document("missing"))

    def test_upsert_replaces_text_embedding_and_metadata(self) -> None:
        self.backend.add_document("x", "text1", [1.0, 0.0], {"lang": "en", "old": "yes"})
        self.backend.add_document("x", "text2", [0.0, 1.0], {"lang": "fr"})

        document = self.backend.get_document("x")
        self.assertEqual(self.backend.get_document_count(), 1)
        self.assertEqual(document.text, "text2")
        self.assertEqual(document.embedding, (0.0, 1.0))
        self.assertEqual(dict(document.metadata), {"lang": "fr"})

    def test_upsert_keeps_original_enumeration_position(self) -> None:
        self.backend.add_document("a", "a", [1.0, 0.0])
        self.backend.add_document("b", "b", [1.0, 0.0])
        self.backend.add_document("a", "a2", [1.0, 0.0])

        self.assertEqual([doc.id for doc in self.backend.get_all_documents()], ["a", "b"])
        self.assertEqual([hit.id for hit in self.backend.search([1.0, 0.0], top_k=2)], ["a", "b"])

    def test_metadata_values_are_stored_as_strings(self) -> None:
        self.backend.add_document("n", "numbers", [1.0, 0.0], {"year": 2024, "flag": True})

        self.assertEqual(dict(self.backend.get_document("n").metadata), {"year": "2024", "flag": "True"})
        hits = self.backend.search([1.0, 0.0], top_k=5, filters={"year": 2024})
        self.assertEqual([hit.id for hit in hits], ["n"])

    def test_invalid_documents_are_rejected(self) -> None:
        with self.assertRaises(ValueError):
            self.backend.add_document("", "no id", [1.0])
        with self.assertRaises(ValueError):
            self.backend.add_document("empty", "no vector", [])
        self.assertEqual(self.backend.get_document_count(), 0)

    def test_embedding_out_of_float32_range_is_rejected(self) -> None:
        self.backend.add_document("ok", "kept", [1.0, 1.0])

        with self.assertRaises(CodecError):
            self.backend.add_document("huge", "overflow", [1e40, 1.0])
        with self.assertRaises(CodecError):
            self.backend.add_document("ok", "replaced", [1.0, -1e39])

        self.assertIsNone(self.backend.get_document("huge"))
        self.assertEqual(self.backend.get_document("ok").text, "kept")
        hits = self.backend.search([1.0, 1.0], top_k=5)
        self.assertEqual([hit.id for hit in hits], ["ok"])
        self.assertAlmostEqual(hits[0].score, 1.0, places=6)

    def test_embeddings_are_held_at_float32_precision(self) -> None:
        values = [0.1, 1.0 / 3.0, -2.7]
        self.backend.add_document("p", "precision", values)

        stored = self.backend.get_document("p").embedding

        self.assertEqual(stored, tuple(decode_vector(encode_vector(values), 3)))
        self.assertEqual(self.backend.get_all_documents()[0].embedding, stored)

    def test_filter_returns_only_matching_documents(self) -> None:
        self.backend.add_document("A", "english", [1.0, 0.0], {"lang": "en"})
        self.backend.add_document("B", "french", [1.0, 0.0], {"lang": "fr"})

        hits = self.backend.search([1.0, 0.0], top_k=10, filters={"lang": "en"})

        self.assertEqual([hit.id for hit in hits], ["A"])
        self.assertEqual(dict(hits[0].metadata), {"lang": "en"})

    def test_filter_requires_every_pair_and_key_presence(self) -> None:
        self._seed_languages()

        self.assertEqual(
            [hit.id for hit in self.backend.search([1, 0, 0], top_k=10, filters={"lang": "en", "topic": "greet"})],
            ["c"],
        )
        self.assertEqual(self.backend.search([1, 0, 0], top_k=10, filters={"missing": "x"}), [])
        self.assertEqual(self.backend.search([1, 0, 0], top_k=10, filters={"lang": "EN"}), [])
        self.assertEqual(len(self.backend.search([1, 0, 0], top_k=10, filters={})), 3)
        self.assertEqual(len(self.backend.search([1, 0, 0], top_k=10, filters=None)), 3)

    def test_filter_with_key_that_cannot_be_pushed_down(self) -> None:
        self.backend.add_document("q1", "quoted", [1.0, 0.0], {'odd "key"': "v", "sp ace": "1"})
        self.backend.add_document("q2", "other", [1.0, 0.0], {'odd "key"': "w"})

        hits = self.backend.search([1.0, 0.0], top_k=10, filters={'odd "key"': "v", "sp ace": "1"})

        self.assertEqual([hit.id for hit in hits], ["q1"])

    def test_filter_is_applied_before_truncation(self) -> None:
        self.backend.add_document("best", "best", [1.0, 0.0], {"lang": "fr"})
        self.backend.add_document("good", "good", [0.9, 0.1], {"lang": "fr"})
        self.backend.add_document("weak", "weak", [0.1, 0.9], {"lang": "en"})

        hits = self.backend.search([1.0, 0.0], top_k=1, filters={"lang": "en"})

        self.assertEqual([hit.id for hit in hits], ["weak"])

    def test_results_are_bounded_and_sorted(self) -> None:
        vectors = {
            "d1": [1.0, 0.0, 0.0],
            "d2": [0.8, 0.6, 0.0],
            "d3": [0.0, 1.0, 0.0],
            "d4": [-1.0, 0.0, 0.0],
            "d5": [0.6, 0.0, 0.8],
        }
        for doc_id, vector in vectors.items():
            self.backend.add_document(doc_id, doc_id, vector, {"group": "g"})

        for top_k in (1, 3, 5, 50):
            hits = self.backend.search([1.0, 0.2, 0.1], top_k=top_k)
            self.assertLessEqual(len(hits), top_k)
            self.assertLessEqual(len(hits), len(vectors))
            for current, following in zip(hits, hits[1:]):
                self.assertGreaterEqual(current.score, following.score)

        self.assertEqual(self.backend.search([1.0, 0.0, 0.0], top_k=5)[-1].id, "d4")

    def test_non_positive_top_k_returns_nothing(self) -> None:
        self._seed_languages()

        self.assertEqual(self.backend.search([1, 0, 0], top_k=0), [])
        self.assertEqual(self.backend.search([1, 0, 0], top_k=-3), [])

    def test_search_fails_on_dimension_mismatch(self) -> None:
        self.backend.add_document("three", "three", [1.0, 0.0, 0.0], {"kind": "3d"})
        self.backend.add_document("two", "two", [1.0, 0.0], {"kind": "2d"})

        with self.assertRaises(DimensionMismatchError):
            self.backend.search([1.0, 0.0, 0.0], top_k=10)

        hits = self.backend.search([1.0, 0.0, 0.0], top_k=10, filters={"kind": "3d"})
        self.assertEqual([hit.id for hit in hits], ["three"])

    def test_zero_query_vector_scores_zero(self) -> None:
        self.backend.add_document("a", "a", [1.0, 0.0])

        hits = self.backend.search([0.0, 0.0], top_k=1)

        self.assertEqual(hits[0].score, 0.0)

    def test_get_all_documents_and_count(self) -> None:
        self.assertEqual(self.backend.get_all_documents(), [])
        self.assertEqual(self.backend.get_document_count(), 0)

        self._seed_languages()

        self.assertEqual([doc.id for doc in self.backend.get_all_documents()], ["a", "b", "c"])
        self.assertEqual(self.backend.get_document_count(), 3)

    def test_delete_document(self) -> None:
        self._seed_languages()

        self.assertTrue(self.backend.delete_document("b"))
        self.assertFalse(self.backend.delete_document("b"))
        self.assertIsNone(self.backend.get_document("b"))
        self.assertEqual(self.backend.get_document_count(), 2)
        self.assertEqual([hit.id for hit in self.backend.search([0, 1, 0], top_k=10)], ["c", "a"])

    def test_data_survives_reopen(self) -> None:
        self._seed_languages()
        self.backend.close()

        reopened = self.open_backend(self.path)
        self.addCleanup(reopened.close)

        self.assertEqual(reopened.get_document_count(), 3)
        self.assertEqual(reopened.get_document("c").text, "hi there")
        self.assertEqual([doc.id for doc in reopened.get_all_documents()], ["a", "b", "c"])

    def test_create_indexes_never_changes_results(self) -> None:
        self._seed_languages()
        before = self.backend.search([1, 0, 0], top_k=10, filters={"lang": "en"})

        self.backend.create_indexes()
        self.backend.create_indexes()

        self.assertEqual(self.backend.search([1, 0, 0], top_k=10, filters={"lang": "en"}), before)

    def test_export_to_jsonl_round_trips(self) -> None:
        self.backend.add_document("u1", "unicode café ✓", [0.1, -2.5, 3.25], {"lang": "fr", "k": "v"})
        self.backend.add_document("u2", 'quotes " and, commas', [1e-8, 0.0, 123456.789], {})
        target = self.tmp_dir / "export.jsonl"

        count = self.backend.export_to_jsonl(target)

        self.assertEqual(count, 2)
        lines = target.read_text(encoding="utf-8").splitlines()
        self.assertEqual(len(lines), 2)
        self.assertEqual(set(json.loads(lines[0])), {"id", "text", "embedding", "metadata"})
        self.assertEqual(list(read_jsonl(target)), self.backend.get_all_documents())

    def test_export_to_csv(self) -> None:
        self._seed_languages()
        target = self.tmp_dir / "export.csv"

        count = self.backend.export_to_csv(target)

        with target.open("r", encoding="utf-8", newline="") as handle:
            rows = list(csv.reader(handle))
        self.assertEqual(count, 3)
        self.assertEqual(rows[0], ["id", "text", "embedding", "metadata"])
        self.assertEqual([row[0] for row in rows[1:]], ["a", "b", "c"])
        self.assertEqual(json.loads(rows[1][2]), [1.0, 0.0, 0.0])
        self.assertEqual(json.loads(rows[3][3]), {"lang": "en", "topic": "greet"})

    def test_close_is_idempotent_and_blocks_further_use(self) -> None:
        self.backend.add_document("a", "a", [1.0])

        self.backend.close()
        self.backend.close()

        with self.assertRaises(StorageError):
            self.backend.get_document_count()
        with self.assertRaises(StorageError):
            self.backend.add_document("b", "b", [1.0])

    def test_context_manager_closes_backend(self) -> None:
        other_path = self.tmp_dir / f"other{self.backend_suffix}"
        with self.open_backend(other_path) as backend:
            backend.add_document("a", "a", [1.0, 2.0])
        with self.assertRaises(StorageError):
            backend.search([1.0, 2.0])
