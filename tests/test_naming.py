"""Tests for httpapigen.naming."""

from __future__ import annotations

import pytest

from httpapigen.naming import to_camel_case, to_kebab_case, to_pascal_case


class TestPascalCase:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("create-user", "CreateUser"),
            ("createUser", "CreateUser"),
            ("CreateUser", "CreateUser"),
            ("create_user", "CreateUser"),
            ("pet store", "PetStore"),
            ("HTTPServer", "HTTPServer"),
            ("v2 api", "V2Api"),
            ("", ""),
            ("---", ""),
        ],
    )
    def test_conversion(self, text: str, expected: str) -> None:
        assert to_pascal_case(text) == expected

    @pytest.mark.parametrize("text", ["create-user", "pet_store API", "getPetsById"])
    def test_idempotent(self, text: str) -> None:
        once = to_pascal_case(text)
        assert to_pascal_case(once) == once


class TestCamelCase:
    def test_lowercases_first_letter(self) -> None:
        assert to_camel_case("create-user") == "createUser"
        assert to_camel_case("CreateUser") == "createUser"

    def test_empty(self) -> None:
        assert to_camel_case("") == ""


class TestKebabCase:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("CreateUser", "create-user"),
            ("pet_store API", "pet-store-api"),
            ("pets", "pets"),
            ("Pet  Store!!", "pet-store"),
        ],
    )
    def test_conversion(self, text: str, expected: str) -> None:
        assert to_kebab_case(text) == expected

    def test_pascal_and_kebab_agree(self) -> None:
        assert to_kebab_case("create-user") == to_kebab_case("createUser")
        assert to_pascal_case(to_kebab_case("PetStore")) == "PetStore"

    def test_idempotent(self) -> None:
        once = to_kebab_case("getPetsById")
        assert once == "get-pets-by-id"
        assert to_kebab_case(once) == once
