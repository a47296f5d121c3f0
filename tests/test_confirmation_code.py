"""
Tests for confirmation code generation.
"""


class TestConfirmationCode:
    """Tests for generate_confirmation_code and uniqueness checks."""

    def test_code_shape(self):
        """Codes are six characters from the unambiguous alphabet."""
        from models.confirmation_code import generate_confirmation_code, CODE_ALPHABET

        for _ in range(200):
            code = generate_confirmation_code()
            assert len(code) == 6
            assert all(ch in CODE_ALPHABET for ch in code)

    def test_alphabet_excludes_lookalikes(self):
        from models.confirmation_code import CODE_ALPHABET

        assert len(CODE_ALPHABET) == 32
        for ch in 'IO01':
            assert ch not in CODE_ALPHABET

    def test_unique_code_skips_existing(self, app, make_booking, monkeypatch):
        """A candidate already in use is replaced by the next one."""
        import models.confirmation_code as codes

        with app.app_context():
            existing = make_booking()['confirmation_code']
            candidates = iter([existing, 'ZZZZZZ'])
            monkeypatch.setattr(codes, 'generate_confirmation_code', lambda: next(candidates))

            assert codes.generate_unique_confirmation_code() == 'ZZZZZZ'

    def test_gives_up_after_max_attempts(self, app, make_booking, monkeypatch):
        """After max_attempts collisions the last candidate is returned."""
        import models.confirmation_code as codes

        with app.app_context():
            existing = make_booking()['confirmation_code']
            monkeypatch.setattr(codes, 'generate_confirmation_code', lambda: existing)

            assert codes.generate_unique_confirmation_code(max_attempts=3) == existing

    def test_code_collision_at_insert_is_retried(self, app, make_booking, booking_params, monkeypatch):
        """A duplicate code rejected by the UNIQUE constraint is regenerated."""
        import models.booking_create as booking_create
        from conftest import NOW, TABLE_T3

        with app.app_context():
            existing = make_booking()['confirmation_code']
            candidates = iter([existing, 'QWERTY'])
            monkeypatch.setattr(
                booking_create, 'generate_unique_confirmation_code',
                lambda max_attempts=5: next(candidates)
            )

            result = booking_create.create_booking(booking_params(table_id=TABLE_T3), now=NOW)

            assert result['success'], result
            assert result['data']['confirmation_code'] == 'QWERTY'
