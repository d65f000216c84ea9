"""
Unit tests for the data models (Player, Moderator).
"""
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from brackets.models import Player, Moderator, same_name


class TestPlayer:
    """Tests for the Player model."""

    def test_player_creation_with_name(self):
        player = Player(name="Ann")
        assert player.name == "Ann"
        assert player.seed is None

    def test_to_dict_omits_missing_seed(self):
        assert Player("Ann").to_dict() == {'name': 'Ann'}
        assert Player("Ann", seed=2).to_dict() == {'name': 'Ann', 'seed': 2}

    def test_from_dict_ignores_bad_seed(self):
        assert Player.from_dict({'name': 'Ann', 'seed': 'top'}) == Player('Ann')
        assert Player.from_dict({}) == Player('')

    def test_player_repr(self):
        repr_str = repr(Player("Ann", seed=3))
        assert "Ann" in repr_str
        assert "3" in repr_str


class TestModerator:
    """Tests for the Moderator model."""

    def test_round_trip(self):
        assert Moderator.from_dict({'name': 'kim'}).to_dict() == {'name': 'kim'}

    def test_moderator_repr(self):
        assert "kim" in repr(Moderator("kim"))


def test_same_name_is_case_insensitive():
    assert same_name("Ann", "aNN")
    assert not same_name("Ann", "Anne")
