from obsstats import console


def test_info_goes_to_stdout(capsys):
    console.info("hello", "world")
    captured = capsys.readouterr()
    assert captured.err == ""
    assert "hello" in captured.out
    assert "world" in captured.out
    assert captured.out.endswith(" \n")


def test_info_uses_cyan_bold_italic(capsys):
    console.info("msg", "payload")
    out = capsys.readouterr().out
    assert out.startswith("\x1b[1;3;36mmsg\x1b[0m \n ")
    assert "\x1b[1;3;36mpayload\x1b[0m" in out


def test_error_goes_to_stderr_with_red_data(capsys):
    console.error("failed", "reason")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.startswith("\x1b[1;3;36mfailed\x1b[0m")
    assert "\x1b[1;3;31mreason\x1b[0m" in captured.err


def test_message_and_data_on_separate_lines(capsys):
    console.info("first", "second")
    lines = capsys.readouterr().out.split("\n")
    assert "first" in lines[0]
    assert "second" in lines[1]