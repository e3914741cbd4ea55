"""Tests for track title clean-up."""

import pytest

from lyryc.core.track_cleaning import clean_track_name, remove_artist_from_track


class TestCleanTrackName:
    @pytest.mark.parametrize("raw,expected", [
        ("Song (feat. Someone)", "Song"),
        ("Song [feat. Someone Else]", "Song"),
        ("Song ft. Someone", "Song"),
        ("Song - 2011 Remaster", "Song"),
        ("Song (Remastered 2009)", "Song"),
        ("Bohemian Rhapsody (Official Video)", "Bohemian Rhapsody"),
        ("Bohemian Rhapsody (Official Music Video) - YouTube", "Bohemian Rhapsody"),
        ("Levitating (Dua Lipa Remix)", "Levitating"),
        ("Yesterday (Live Version)", "Yesterday"),
        ("clip.mp4", "clip"),
        ("Song | Artist Channel", "Song"),
        ('"Quoted Title"', "Quoted Title"),
        ("Plain Title", "Plain Title"),
    ])
    def test_decorations_removed(self, raw, expected):
        assert clean_track_name(raw) == expected

    def test_japanese_quotes(self):
        assert clean_track_name("アーティスト「夜に駆ける」Official") == "夜に駆ける"
        assert clean_track_name("アーティスト『群青日和』") == "群青日和"

    def test_bracket_decorations(self):
        assert clean_track_name("【MV】曲名 (Official Video) - YouTube") == "曲名"
        assert clean_track_name("【MV】アイドル【公式】") == "アイドル"

    def test_native_title_kept_over_romaji(self):
        assert clean_track_name("私じゃなかったんだね。 - Watashijyanakattandane") == "私じゃなかったんだね。"

    def test_empty(self):
        assert clean_track_name("") == ""

    def test_never_empties_title(self):
        assert clean_track_name("(Official Video)") == "(Official Video)"


class TestRemoveArtistFromTrack:
    def test_leading_artist(self):
        assert remove_artist_from_track("Queen - Bohemian Rhapsody", "Queen") == "Bohemian Rhapsody"

    def test_trailing_artist_case_insensitive(self):
        assert remove_artist_from_track("Bohemian Rhapsody – queen", "Queen") == "Bohemian Rhapsody"

    def test_regex_characters_in_artist(self):
        assert remove_artist_from_track("AC/DC (Live) - Thunderstruck", "AC/DC (Live)") == "Thunderstruck"

    def test_unchanged(self):
        assert remove_artist_from_track("Bohemian Rhapsody", "Queen") == "Bohemian Rhapsody"
        assert remove_artist_from_track("Queen", "Queen") == "Queen"
        assert remove_artist_from_track("Song", "") == "Song"
