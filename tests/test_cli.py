import json

import pytest

from menu_scan.cli import build_parser, main


@pytest.fixture
def dishes_file(tmp_path):
    path = tmp_path / "dishes.json"
    path.write_text(
        json.dumps({"dishes": [{"name": "Kale bowl"}, {"name": "Beef stew"}, {"name": "Pork chop"}]}),
        encoding="utf-8",
    )
    return path


def _write_json(tmp_path, name, payload):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_parser_defaults() -> None:
    opts = build_parser().parse_args(["dishes.json"])
    assert (opts.hunger, opts.timing, opts.mode) == ("moderate", "regular", "contextual")


def test_ranks_dishes(dishes_file, capsys) -> None:
    main([str(dishes_file)])
    out = capsys.readouterr().out
    assert "Top 3" in out
    assert "Kale bowl" in out and "Pork chop" in out


def test_rejected_and_no_safe_message(tmp_path, capsys) -> None:
    dishes = _write_json(tmp_path, "dishes.json", [{"name": "Pork chop"}])
    profile = _write_json(tmp_path, "profile.json", {"dietaryLaws": "halal"})
    main([dishes, "--profile", profile, "--show-rejected"])
    out = capsys.readouterr().out
    assert "Filtered out" in out
    assert "No dishes matched your dietary needs." in out


def test_extended_profile_merged(dishes_file, tmp_path, capsys) -> None:
    profile = _write_json(tmp_path, "profile.json", {"dietaryPreferences": []})
    extended = _write_json(tmp_path, "extended.json", {"dietaryPreferences": ["vegan"]})
    main([str(dishes_file), "--profile", profile, "--extended-profile", extended, "--show-rejected"])
    out = capsys.readouterr().out
    assert "Not vegan" in out


def test_menu_text_in_category_mode(tmp_path, capsys) -> None:
    menu = tmp_path / "menu.txt"
    menu.write_text("Grilled salmon 19 €\nKale salad 11 €\nCheesy lasagna 15 €\n", encoding="utf-8")
    main(["--menu-text", str(menu), "--mode", "category"])
    out = capsys.readouterr().out
    assert "Recovery" in out and "Healthy" in out and "Comforting" in out


def test_bad_input_file(tmp_path, capsys) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{oops", encoding="utf-8")
    main([str(path)])
    assert "Failed to load input" in capsys.readouterr().out


def test_requires_an_input() -> None:
    with pytest.raises(SystemExit):
        main([])
