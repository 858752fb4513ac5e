"""
Unit tests for prompt-delimited message framing.
"""

import io
import unittest

from py2fah.core.errors import ErrorCodes, ProtocolError
from py2fah.core.socket_reader import END_OF_MESSAGE, read_message


class TestReadMessage(unittest.TestCase):
    """Test the boundary scanner."""

    def test_boundary_sequence(self):
        self.assertEqual(END_OF_MESSAGE, b"\n> ")

    def test_messages(self):
        """Test inputs that contain a boundary."""
        cases = [
            (b"\n> ", b""),
            (b"a\n> ", b"a"),
            (b"a\n> \n> ", b"a"),
            (b"\na\n> ", b"a"),
            (b"\n\na\n> ", b"\na"),
            (b"PyON 1 ppd\n12.5\n---\n> ", b"PyON 1 ppd\n12.5\n---"),
        ]

        for data, expected in cases:
            with self.subTest(data=data):
                self.assertEqual(read_message(io.BytesIO(data)), expected)

    def test_end_of_stream(self):
        """Test inputs that end before a boundary keep their bytes on the error."""
        cases = [
            (b"", b""),
            (b"a", b"a"),
            (b"\na", b"\na"),
            (b"a\n>", b"a\n>"),
        ]

        for data, partial in cases:
            with self.subTest(data=data):
                with self.assertRaises(ProtocolError) as cm:
                    read_message(io.BytesIO(data))
                self.assertEqual(cm.exception.partial, partial)
                self.assertEqual(cm.exception.error_code, ErrorCodes.END_OF_STREAM)
                self.assertEqual(cm.exception.context['partial_length'], len(partial))

    def test_leaves_following_message_in_stream(self):
        """Test that only the first message is consumed."""
        stream = io.BytesIO(b"\nfirst\n> \nsecond\n> ")

        self.assertEqual(read_message(stream), b"first")
        self.assertEqual(read_message(stream), b"second")
        with self.assertRaises(ProtocolError):
            read_message(stream)

    def test_prompt_characters_inside_message(self):
        """Test that '>' and newlines alone do not end a message."""
        data = b"a > b\n>c\n> "
        self.assertEqual(read_message(io.BytesIO(data)), b"a > b\n>c")


if __name__ == '__main__':
    unittest.main()
