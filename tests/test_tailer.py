from tracker_core.tailer import FileTailer, split_lines, wait_for, read_complete

from conftest import no_sleep, set_mtime


def make_tailer(path, **kwargs):
    kwargs.setdefault("wait_attempts", 3)
    return FileTailer(path, sleep=no_sleep, **kwargs)


def test_missing_file_yields_nothing(tmp_path):
    tailer = make_tailer(tmp_path / "events.log")
    assert tailer.poll() == []
    assert tailer.offset == 0


def test_complete_lines_returned_once(tmp_path):
    log_file = tmp_path / "events.log"
    log_file.write_text("rsg.enter_nether 15000 14500\nrsg.enter_bastion 30000 29000\n")
    set_mtime(log_file, 1_000)

    tailer = make_tailer(log_file)
    assert tailer.poll() == ["rsg.enter_nether 15000 14500", "rsg.enter_bastion 30000 29000"]
    assert tailer.last_mtime_ms == 1_000
    # No further writes: nothing new, never duplicated
    assert tailer.poll() == []


def test_partial_line_is_held_back(tmp_path):
    log_file = tmp_path / "events.log"
    log_file.write_text("rsg.enter_nether 15000 14500\nrsg.enter_bas")
    set_mtime(log_file, 1_000)

    sleeps = []
    tailer = FileTailer(log_file, wait_attempts=3, sleep=sleeps.append)
    assert tailer.poll() == []
    assert tailer.offset == 0
    assert len(sleeps) == 2

    with open(log_file, "a") as f:
        f.write("tion 30000 29000\n")
    set_mtime(log_file, 2_000)

    assert tailer.poll() == ["rsg.enter_nether 15000 14500", "rsg.enter_bastion 30000 29000"]
    assert tailer.poll() == []


def test_gave_up_poll_retries_without_new_mtime(tmp_path):
    log_file = tmp_path / "events.log"
    log_file.write_text("common.leave_world 500")
    set_mtime(log_file, 1_000)
    tailer = make_tailer(log_file)
    assert tailer.poll() == []

    # Writer finishes the line but the mtime does not move
    with open(log_file, "a") as f:
        f.write(" 400\n")
    set_mtime(log_file, 1_000)

    assert tailer.poll() == ["common.leave_world 500 400"]


def test_offset_only_grows(tmp_path):
    log_file = tmp_path / "events.log"
    log_file.write_text("a 1 1\n")
    set_mtime(log_file, 1_000)
    tailer = make_tailer(log_file)
    tailer.poll()
    first = tailer.offset

    with open(log_file, "a") as f:
        f.write("b 2 2\n")
    set_mtime(log_file, 2_000)
    assert tailer.poll() == ["b 2 2"]
    assert tailer.offset > first


def test_read_header_rebases_on_change(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text("header-one\nbody 1\n")
    tailer = make_tailer(path)

    assert tailer.read_header() == "header-one"
    assert tailer.header_changed()
    assert not tailer.header_changed()
    assert tailer.offset == len(b"header-one")
    assert tailer.poll() == ["body 1"]

    # Same header: offset kept
    assert tailer.read_header() == "header-one"
    assert not tailer.header_changed()

    path.write_text("header-number-two\n")
    assert tailer.read_header() == "header-number-two"
    assert tailer.header_changed()
    assert tailer.offset == len(b"header-number-two")


def test_read_header_waits_for_newline(tmp_path):
    path = tmp_path / "log.txt"
    path.write_text("header without newline")
    tailer = make_tailer(path)
    assert tailer.read_header() is None
    assert not tailer.header_changed()


def test_read_complete_and_split_lines(tmp_path):
    path = tmp_path / "f"
    path.write_bytes(b"x 1 1\r\n\n  y 2 2  \n")
    offset, data = read_complete(path, 0)
    assert offset == path.stat().st_size
    assert split_lines(data) == ["x 1 1", "y 2 2"]
    assert read_complete(path, offset) == (offset, b"")


def test_wait_for_is_bounded():
    calls = []

    def attempt():
        calls.append(1)
        return None

    sleeps = []
    assert wait_for(attempt, attempts=4, delay=0.005, sleep=sleeps.append) is None
    assert len(calls) == 4
    assert sleeps == [0.005] * 3
