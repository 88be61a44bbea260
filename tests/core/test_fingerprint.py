"""Tests for error fingerprinting."""

import hashlib

import pytest


def make_error(message="boom", class_name="RuntimeError", frames=()):
    from airbrake_intake.core.normalizer import Frame
    from airbrake_intake.core.notice import Error

    return Error(
        message=message,
        class_name=class_name,
        backtrace=tuple(Frame(**frame) for frame in frames),
    )


class TestStripGenerated:
    """Tests for generated identifier removal."""

    @pytest.mark.parametrize(
        "method,expected",
        [
            ("foo_2_bar", "foobar"),
            ("block_12_in_render", "blockin_render"),
            ("_3_a_44_b", "ab"),
            ("plain_method", "plain_method"),
            ("method_2", "method_2"),
        ],
    )
    def test_strip_generated(self, method, expected):
        """Test generated identifiers are stripped from method names."""
        from airbrake_intake.core.fingerprint import strip_generated

        assert strip_generated(method) == expected


class TestNormalizedBacktrace:
    """Tests for frame signatures."""

    def test_signature_format(self):
        """Test signature format."""
        from airbrake_intake.core.fingerprint import normalized_backtrace

        error = make_error(frames=[{"file": "a.rb", "method": "foo_2_bar", "line_number": "10"}])

        assert normalized_backtrace(error) == ["a.rb|foobar|10"]

    def test_absent_file_and_number_render_empty(self):
        """Test absent file and number render empty."""
        from airbrake_intake.core.fingerprint import normalized_backtrace

        error = make_error(frames=[{"method": "run"}])

        assert normalized_backtrace(error) == ["|run|"]

    def test_frame_without_method_skipped(self):
        """Test frame without method skipped."""
        from airbrake_intake.core.fingerprint import normalized_backtrace

        error = make_error(frames=[
            {"file": "a.rb", "line_number": "1"},
            {"file": "b.rb", "method": "b", "line_number": "2"},
        ])

        assert normalized_backtrace(error) == ["b.rb|b|2"]


class TestFingerprint:
    """Tests for fingerprint."""

    @pytest.mark.smoke
    def test_known_digest(self):
        """Test known digest."""
        from airbrake_intake.core.fingerprint import fingerprint

        error = make_error(
            message="boom",
            class_name=None,
            frames=[{"file": "a.rb", "method": "foo_2_bar", "line_number": "10"}],
        )

        expected = hashlib.md5("boom\na.rb|foobar|10".encode("utf-8")).hexdigest()
        assert fingerprint(error) == expected
        assert fingerprint(error) == fingerprint(error)

    def test_class_included(self):
        """Test class included."""
        from airbrake_intake.core.fingerprint import fingerprint

        error = make_error(message="boom", class_name="RuntimeError")

        assert fingerprint(error) == hashlib.md5(b"RuntimeError\nboom").hexdigest()

    def test_hex_digest_shape(self):
        """Test hex digest shape."""
        from airbrake_intake.core.fingerprint import fingerprint

        digest = fingerprint(make_error())

        assert len(digest) == 32
        assert all(c in "0123456789abcdef" for c in digest)

    def test_generated_identifiers_collide(self):
        """Test generated identifiers collide."""
        from airbrake_intake.core.fingerprint import fingerprint

        first = make_error(frames=[{"file": "a.rb", "method": "block_2_in_run", "line_number": "5"}])
        second = make_error(frames=[{"file": "a.rb", "method": "block_17_in_run", "line_number": "5"}])

        assert fingerprint(first) == fingerprint(second)

    def test_different_messages_differ(self):
        """Test different messages differ."""
        from airbrake_intake.core.fingerprint import fingerprint

        assert fingerprint(make_error(message="boom")) != fingerprint(make_error(message="bang"))

    def test_different_classes_differ(self):
        """Test different classes differ."""
        from airbrake_intake.core.fingerprint import fingerprint

        assert fingerprint(make_error(class_name="A")) != fingerprint(make_error(class_name="B"))

    def test_different_lines_differ(self):
        """Test different lines differ."""
        from airbrake_intake.core.fingerprint import fingerprint

        first = make_error(frames=[{"file": "a.rb", "method": "run", "line_number": "5"}])
        second = make_error(frames=[{"file": "a.rb", "method": "run", "line_number": "6"}])

        assert fingerprint(first) != fingerprint(second)

    def test_frame_order_matters(self):
        """Test frame order matters."""
        from airbrake_intake.core.fingerprint import fingerprint

        a = {"file": "a.rb", "method": "a", "line_number": "1"}
        b = {"file": "b.rb", "method": "b", "line_number": "2"}

        assert fingerprint(make_error(frames=[a, b])) != fingerprint(make_error(frames=[b, a]))

    def test_unusable_frames_do_not_change_fingerprint(self):
        """Test unusable frames do not change fingerprint."""
        from airbrake_intake.core.fingerprint import fingerprint

        clean = make_error(frames=[{"file": "a.rb", "method": "a", "line_number": "1"}])
        noisy = make_error(frames=[
            {"file": "a.rb", "method": "a", "line_number": "1"},
            {"file": "vendor.rb", "line_number": "9"},
        ])

        assert fingerprint(clean) == fingerprint(noisy)

    def test_parsed_notices_with_same_error_collide(self, notice_xml):
        """Test parsed notices with same error collide."""
        from airbrake_intake.core.fingerprint import fingerprint
        from airbrake_intake.core.notice import parse_notice

        frames_run_1 = [{"file": "app.rb", "method": "block_2_in_call", "number": "3"}]
        frames_run_2 = [{"file": "app.rb", "method": "block_9_in_call", "number": "3"}]

        first = parse_notice(notice_xml(backtrace=frames_run_1, environment_name="production"))
        second = parse_notice(notice_xml(backtrace=frames_run_2, environment_name="staging"))

        assert fingerprint(first.error) == fingerprint(second.error)
