"""Tests for GardenSettings — unified settings with TOML source."""

from pathlib import Path

import click
import pytest

from gardenctl.config.settings import GardenSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in ("GARDENCTL_CONFIG", "GARDENCTL_OWNER", "GARDENCTL_STORE_ROOT"):
        monkeypatch.delenv(var, raising=False)


class TestGardenSettingsDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = GardenSettings.from_cli(store_root=tmp_path)
        assert settings.store_root == tmp_path
        assert settings.config_path is None
        assert settings.owner == "local"
        assert settings.json_output is False
        assert settings.quiet is False
        assert settings.verbose is False
        assert settings.log_json is False
        assert settings.store.name == "my-garden"
        assert settings.tree.max_depth == 100
        assert settings.tree.slug_retry_attempts == 3
        assert settings.uploads.max_file_size == 100 * 1024 * 1024
        assert settings.uploads.presign_ttl_seconds == 3600
        assert settings.check.backup_max_count == 10

    def test_frozen(self, tmp_path: Path) -> None:
        settings = GardenSettings.from_cli(store_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_from_toml(self, tmp_path: Path) -> None:
        (tmp_path / "gardenctl.toml").write_text(
            '[store]\nname = "team-garden"\n[tree]\nmax_depth = 12\n'
        )
        settings = GardenSettings.from_cli(store_root=tmp_path)
        assert settings.store.name == "team-garden"
        assert settings.tree.max_depth == 12
        assert settings.tree.slug_retry_attempts == 3

    def test_empty_toml_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "gardenctl.toml").write_text("")
        settings = GardenSettings.from_cli(store_root=tmp_path)
        assert settings.store.name == "my-garden"

    def test_top_level_owner(self, tmp_path: Path) -> None:
        (tmp_path / "gardenctl.toml").write_text('owner = "carol"\n')
        assert GardenSettings.from_cli(store_root=tmp_path).owner == "carol"

    def test_store_root_follows_config_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "gardenctl.toml").write_text("")
        child = tmp_path / "deep" / "down"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        settings = GardenSettings.from_cli()
        assert settings.store_root == tmp_path.resolve()
        assert settings.config_path == (tmp_path / "gardenctl.toml").resolve()

    def test_store_root_follows_state_dir(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / ".gardenctl").mkdir()
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = GardenSettings.from_cli()
        assert settings.store_root == tmp_path.resolve()
        assert settings.config_path is None

    def test_fresh_directory_uses_cwd(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert GardenSettings.from_cli().store_root == Path.cwd()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "custom" / "my.toml"
        custom.parent.mkdir(parents=True)
        custom.write_text('[uploads]\nkey_prefix = "media"\n')
        settings = GardenSettings.from_cli(config_path=str(custom), store_root=tmp_path)
        assert settings.uploads.key_prefix == "media"
        assert settings.config_path == custom

    def test_missing_config_path(self, tmp_path: Path) -> None:
        with pytest.raises(click.ClickException, match="Config file not found"):
            GardenSettings.from_cli(config_path=str(tmp_path / "nope.toml"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "gardenctl.toml").write_text("[tree\nmax_depth = ")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            GardenSettings.from_cli(store_root=tmp_path)

    def test_out_of_range_value_rejected(self, tmp_path: Path) -> None:
        (tmp_path / "gardenctl.toml").write_text("[tree]\nmax_depth = 0\n")
        with pytest.raises(click.ClickException, match="tree.max_depth"):
            GardenSettings.from_cli(store_root=tmp_path)


class TestEnvAndFlags:
    def test_env_overrides_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "gardenctl.toml").write_text('owner = "carol"\n')
        monkeypatch.setenv("GARDENCTL_OWNER", "dave")
        assert GardenSettings.from_cli(store_root=tmp_path).owner == "dave"

    def test_nested_env(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GARDENCTL_TREE__MAX_DEPTH", "5")
        assert GardenSettings.from_cli(store_root=tmp_path).tree.max_depth == 5

    def test_cli_flags_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GARDENCTL_OWNER", "dave")
        settings = GardenSettings.from_cli(
            store_root=tmp_path,
            json_output=True,
            quiet=True,
            owner="erin",
        )
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.owner == "erin"

    def test_none_flags_dropped(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GARDENCTL_OWNER", "dave")
        settings = GardenSettings.from_cli(store_root=tmp_path, owner=None, verbose=None)
        assert settings.owner == "dave"
        assert settings.verbose is False


class TestOwnerValidation:
    def test_owner_is_stripped(self, tmp_path: Path) -> None:
        assert GardenSettings.from_cli(store_root=tmp_path, owner="  alice ").owner == "alice"

    @pytest.mark.parametrize("owner", ["", "../etc", "a/b", ".hidden", "has space"])
    def test_unsafe_owner_rejected(self, tmp_path: Path, owner: str) -> None:
        with pytest.raises(click.ClickException, match="Invalid owner id"):
            GardenSettings.from_cli(store_root=tmp_path, owner=owner)

    def test_email_style_owner_allowed(self, tmp_path: Path) -> None:
        owner = "alice@example.org"
        assert GardenSettings.from_cli(store_root=tmp_path, owner=owner).owner == owner
