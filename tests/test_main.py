import pytest

import main


def scripted(answers):
    answers = iter(answers)
    return lambda message: next(answers)


def test_collect_routes_stops_on_empty_line():
    ask = scripted(["10.0.0.0/24", " example.com ", "10.0.0.0/24", "   ", "ignored"])
    assert main.collect_routes(ask) == ["10.0.0.0/24", "example.com", "10.0.0.0/24"]


def test_collect_routes_nothing():
    assert main.collect_routes(scripted([""])) == []


def test_main_writes_output(wg_conf, tmp_path, capsys):
    src = wg_conf
    dst = tmp_path / "ws0.conf"

    main.main(
        ["--input", str(src), "--output", str(dst)],
        ask=scripted(["192.168.1.0/24", "2001:db8::1", ""]),
    )

    out = capsys.readouterr().out
    assert f"Generated: {dst}" in out
    assert "IPv6" in out
    assert "AllowedIPs = 192.168.1.0/24\n" in dst.read_text()


def test_main_uses_profile_routes(wg_conf, tmp_path):
    src = wg_conf
    dst = tmp_path / "ws0.conf"
    profile = tmp_path / "profile.yaml"
    profile.write_text(f"input: {src}\noutput: {dst}\nroutes:\n  - 10.8.0.0/24\n")

    def never(message):
        raise AssertionError("should not prompt")

    main.main(["--profile", str(profile)], ask=never)

    assert "AllowedIPs = 10.8.0.0/24\n" in dst.read_text()


def test_main_missing_input_exits(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(
            ["--input", str(tmp_path / "nope.conf"), "--output", str(tmp_path / "out.conf")],
            ask=scripted([""]),
        )
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_main_strict_missing_peer_exits(tmp_path):
    src = tmp_path / "wg0.conf"
    src.write_text("[Interface]\nDNS = 10.0.0.1\n")
    with pytest.raises(SystemExit):
        main.main(
            ["--input", str(src), "--output", str(tmp_path / "out.conf"), "--strict"],
            ask=scripted([""]),
        )
    assert not (tmp_path / "out.conf").exists()


def test_main_unwritable_output_exits(wg_conf, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(
            ["--input", str(wg_conf), "--output", str(tmp_path / "missing" / "ws0.conf")],
            ask=scripted([""]),
        )
    assert exc.value.code == 1
    assert "Error:" in capsys.readouterr().err


def test_main_prompts_for_missing_paths(wg_conf, tmp_path, monkeypatch, capsys):
    dst = tmp_path / "ws0.conf"
    answers = {"Input file": str(wg_conf), "Output file": str(dst)}
    monkeypatch.setattr(main.Prompt, "ask", lambda message, **kwargs: answers[message])

    main.main([], ask=scripted(["10.0.0.0/24", ""]))

    assert "AllowedIPs = 10.0.0.0/24\n" in dst.read_text()
    assert "Generated:" in capsys.readouterr().out
