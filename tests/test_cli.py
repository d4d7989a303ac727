import json
import os

import pytest
from typer.testing import CliRunner
from unittest.mock import MagicMock

import main
from main import app
from library import Library
from storage import load_library, save_library

runner = CliRunner()


@pytest.fixture
def stocked_file(data_file):
    lib = Library()
    lib.add_book(1, "Dune", "Herbert", 5)
    lib.add_book(2, "Dune Messiah", "Herbert", 2)
    save_library(data_file, lib)
    return data_file


def test_list_no_books(data_file):
    result = runner.invoke(app, ["-d", data_file, "list"])
    assert result.exit_code == 0
    assert "No books available." in result.stdout


def test_add_book_success(data_file):
    result = runner.invoke(app, ["-d", data_file, "add", "1", "Dune", "Frank Herbert", "5"])
    assert result.exit_code == 0
    assert "Book added successfully." in result.stdout
    assert load_library(data_file).find_book(1).author == "Frank Herbert"


def test_add_book_duplicate(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "add", "1", "Other", "Someone", "1"])
    assert result.exit_code == 0
    assert "Error: Book ID 1 already exists." in result.stdout
    assert load_library(stocked_file).find_book(1).title == "Dune"


def test_add_rejects_negative_quantity(data_file):
    result = runner.invoke(app, ["-d", data_file, "add", "1", "Dune", "Herbert", "--", "-1"])
    assert result.exit_code != 0
    assert not os.path.exists(data_file)


def test_find_book_success(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "find", "1"])
    assert result.exit_code == 0
    assert "Book ID: 1 | Title: Dune | Author: Herbert | Quantity: 5" in result.stdout


def test_find_book_not_found(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "find", "9"])
    assert result.exit_code == 0
    assert "Book not found." in result.stdout


def test_search(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "search", "Messiah"])
    assert result.exit_code == 0
    assert "Dune Messiah" in result.stdout
    assert "Book ID: 1 " not in result.stdout


def test_search_no_match(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "search", "dune"])
    assert result.exit_code == 0
    assert "No matching books." in result.stdout


def test_update_and_delete(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "update", "1", "10"])
    assert result.exit_code == 0
    assert "Quantity updated successfully." in result.stdout

    result = runner.invoke(app, ["-d", stocked_file, "delete", "2"])
    assert result.exit_code == 0
    assert "Book deleted successfully." in result.stdout

    lib = load_library(stocked_file)
    assert [b.to_dict() for b in lib.list_books()] == [{"id": 1, "title": "Dune", "author": "Herbert", "quantity": 10}]


def test_update_and_delete_not_found(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "update", "9", "1"])
    assert result.exit_code == 0
    assert "Error: Book ID 9 not found." in result.stdout

    result = runner.invoke(app, ["-d", stocked_file, "delete", "9"])
    assert result.exit_code == 0
    assert "Error: Book ID 9 not found." in result.stdout
    assert len(load_library(stocked_file)) == 2


def test_list_json_output(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "-o", "json", "list"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert {item["id"] for item in payload} == {1, 2}


def test_stats(stocked_file):
    result = runner.invoke(app, ["-d", stocked_file, "stats"])
    assert result.exit_code == 0
    assert "Total Books: 2" in result.stdout
    assert "Unique Authors: 1" in result.stdout
    assert "Total Copies: 7" in result.stdout


def test_invalid_output_mode(data_file):
    result = runner.invoke(app, ["-d", data_file, "-o", "xml", "list"])
    assert result.exit_code != 0


def test_malformed_file_exits_without_overwriting(data_file):
    with open(data_file, "w", encoding="utf-8") as f:
        f.write("1|Dune|Herbert\n")

    result = runner.invoke(app, ["-d", data_file, "list"])

    assert result.exit_code == 1
    assert "could not load catalog" in result.stdout
    with open(data_file, encoding="utf-8") as f:
        assert f.read() == "1|Dune|Herbert\n"


def test_save_failure_reported(stocked_file, monkeypatch):
    monkeypatch.setattr(main, "save_library", MagicMock(side_effect=PermissionError("read-only")))

    result = runner.invoke(app, ["-d", stocked_file, "add", "3", "Emma", "Austen", "1"])

    assert result.exit_code == 1
    assert "Book added successfully." in result.stdout
    assert "could not save catalog: read-only" in result.stdout


def test_menu_add_search_and_exit(data_file):
    keys = "\n".join(["1", "1", "Dune", "Herbert", "5", "3", "Dune", "7"]) + "\n"

    result = runner.invoke(app, ["-d", data_file], input=keys)

    assert result.exit_code == 0
    assert "Book added successfully." in result.stdout
    assert "Book ID: 1 | Title: Dune | Author: Herbert | Quantity: 5" in result.stdout
    assert "Exiting..." in result.stdout
    assert load_library(data_file).find_book(1).quantity == 5


def test_menu_reports_errors_and_continues(stocked_file):
    keys = "\n".join(["1", "1", "Again", "Someone", "3", "6", "9", "5", "2", "4", "7"]) + "\n"

    result = runner.invoke(app, ["-d", stocked_file], input=keys)

    assert result.exit_code == 0
    assert "Book ID 1 already exists." in result.stdout
    assert "Book ID 9 not found." in result.stdout
    assert "Quantity updated successfully." in result.stdout
    assert load_library(stocked_file).find_book(2).quantity == 4


def test_menu_end_of_input_saves_and_exits(data_file):
    keys = "\n".join(["1", "5", "Emma", "Austen", "1"]) + "\n"

    result = runner.invoke(app, ["-d", data_file], input=keys)

    assert result.exit_code == 0
    assert load_library(data_file).find_book(5).title == "Emma"


def test_invalid_utf8_file_reports_load_error(data_file):
    with open(data_file, "wb") as f:
        f.write(b"1|Caf\xe9|Author|2\n")

    result = runner.invoke(app, ["-d", data_file, "list"])

    assert result.exit_code == 1
    assert "could not load catalog" in result.stdout
    with open(data_file, "rb") as f:
        assert f.read() == b"1|Caf\xe9|Author|2\n"


def test_unencodable_save_reported(stocked_file, monkeypatch):
    def add_bad_title(library):
        library.add_book(3, "bad\udcff", "X", 1)
        main.console.print("[green]Book added successfully.[/]")

    monkeypatch.setitem(main.MENU_ACTIONS, "1", add_bad_title)

    result = runner.invoke(app, ["-d", stocked_file], input="1\n7\n")

    assert result.exit_code == 1
    assert "could not save catalog" in result.stdout
    assert len(load_library(stocked_file)) == 2
