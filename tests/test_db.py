from tagbook.db import db_path, get_engine, init_db, reset_engine, session_scope
from tagbook.models import Note


def test_engine_follows_env_path_and_echo(tmp_path, monkeypatch):
    target = tmp_path / "nested" / "one.sqlite"
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(target))
    monkeypatch.delenv("TAGBOOK_DB_ECHO", raising=False)
    reset_engine()

    assert db_path() == target
    assert target.parent.is_dir()
    first = get_engine()
    assert first.echo is False
    assert get_engine() is first

    monkeypatch.setenv("TAGBOOK_DB_ECHO", "true")
    echoing = get_engine()
    assert echoing is not first
    assert echoing.echo is True

    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / "two.sqlite"))
    assert str(get_engine().url).endswith("two.sqlite")


def test_session_scope_rolls_back_on_error(tmp_path, monkeypatch):
    monkeypatch.setenv("TAGBOOK_DB_PATH", str(tmp_path / "rollback.sqlite"))
    reset_engine()
    init_db()

    try:
        with session_scope() as s:
            s.add(Note(title="never saved"))
            s.flush()
            raise RuntimeError("boom")
    except RuntimeError:
        pass

    with session_scope() as s:
        assert s.get(Note, 1) is None
