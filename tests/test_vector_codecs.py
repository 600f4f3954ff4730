from __future__ import annotations

import struct
import unittest

from embedstore import CodecError, VectorCodec, decode_vector, encode_vector
from embedstore.core.vectors.vector_codecs import to_stored_precision


class VectorCodecTests(unittest.TestCase):
    def test_encode_uses_little_endian_float32(self) -> None:
        self.assertEqual(encode_vector([1.0]), b"\x00\x00\x80\x3f")
        self.assertEqual(encode_vector([1.0, -2.0]), struct.pack("<2f", 1.0, -2.0))
        self.assertEqual(len(encode_vector([0.0] * 384)), 384 * 4)

    def test_round_trip_of_representable_values(self) -> None:
        values = [0.5, -0.25, 3.0, 0.0, 1024.0]

        self.assertEqual(decode_vector(encode_vector(values), len(values)), values)

    def test_decode_returns_python_floats(self) -> None:
        decoded = decode_vector(encode_vector([1, 2]), 2)

        self.assertEqual(decoded, [1.0, 2.0])
        self.assertTrue(all(type(value) is float for value in decoded))

    def test_values_are_rounded_to_single_precision(self) -> None:
        decoded = decode_vector(encode_vector([0.1]), 1)

        self.assertNotEqual(decoded[0], 0.1)
        self.assertAlmostEqual(decoded[0], 0.1, places=6)

    def test_empty_vector(self) -> None:
        self.assertEqual(encode_vector([]), b"")
        self.assertEqual(decode_vector(b"", 0), [])

    def test_decode_rejects_length_mismatch(self) -> None:
        blob = encode_vector([1.0, 2.0])

        with self.assertRaises(CodecError):
            decode_vector(blob, 3)
        with self.assertRaises(CodecError):
            decode_vector(blob[:-1], 2)
        with self.assertRaises(CodecError):
            decode_vector(blob, -1)

    def test_encode_rejects_bad_input(self) -> None:
        with self.assertRaises(CodecError):
            encode_vector(["not a number"])
        with self.assertRaises(CodecError):
            encode_vector([[1.0, 2.0], [3.0, 4.0]])

    def test_values_beyond_float32_range_are_rejected(self) -> None:
        with self.assertRaises(CodecError):
            encode_vector([1e40, 1.0])
        with self.assertRaises(CodecError):
            encode_vector([0.0, -3.5e38])
        with self.assertRaises(CodecError):
            to_stored_precision([1e39])

    def test_non_finite_input_is_kept_as_is(self) -> None:
        decoded = decode_vector(encode_vector([float("inf"), 3.4e38]), 2)

        self.assertEqual(decoded[0], float("inf"))
        self.assertAlmostEqual(decoded[1] / 3.4e38, 1.0, places=6)

    def test_stored_precision_matches_decoded_values(self) -> None:
        values = [0.1, -2.7, 123456.789]

        self.assertEqual(to_stored_precision(values), decode_vector(encode_vector(values), 3))

    def test_codec_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            decode_vector(b"\x00", 1)

    def test_accepts_memoryview_payload(self) -> None:
        blob = encode_vector([2.0, 4.0])

        self.assertEqual(VectorCodec().decode(memoryview(blob), 2), [2.0, 4.0])

    def test_big_endian_codec(self) -> None:
        codec = VectorCodec(byte_order=">")

        self.assertEqual(codec.encode([1.0]), b"\x3f\x80\x00\x00")
        self.assertEqual(codec.decode(b"\x3f\x80\x00\x00", 1), [1.0])


if __name__ == "__main__":
    unittest.main()
