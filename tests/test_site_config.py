"""
Sticker Portal - Site Configuration Tests
=========================================
"""

import asyncio
import json

import pytest

from sticker_portal.services.site_config import DEFAULT_OG_CONFIG, Configured, SiteConfig, Uninitialized


class TestSetupState:

    def test_starts_uninitialized(self, tmp_path):
        config = SiteConfig(tmp_path / "config.json")
        assert isinstance(config.state, Uninitialized)
        assert config.setup_complete is False
        assert config.is_admin("42") is False

    @pytest.mark.asyncio
    async def test_first_claim_wins_and_persists(self, tmp_path):
        path = tmp_path / "config.json"
        config = SiteConfig(path)
        assert await config.claim_admin("42") is True
        assert config.state == Configured("42")

        data = json.loads(path.read_text())
        assert data["setupComplete"] is True
        assert data["adminUserId"] == "42"

    @pytest.mark.asyncio
    async def test_later_claims_lose(self, tmp_path):
        config = SiteConfig(tmp_path / "config.json")
        await config.claim_admin("42")
        assert await config.claim_admin("99") is False
        assert await config.claim_admin("42") is True
        assert config.admin_user_id == "42"

    @pytest.mark.asyncio
    async def test_concurrent_first_logins_have_one_winner(self, tmp_path):
        config = SiteConfig(tmp_path / "config.json")
        results = await asyncio.gather(*(config.claim_admin(str(n)) for n in range(5)))
        assert results.count(True) == 1
        assert config.admin_user_id == str(results.index(True))

    def test_state_survives_restart(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"setupComplete": True, "adminUserId": "42"}))
        config = SiteConfig(path)
        assert config.is_admin("42") is True


class TestOGConfig:

    def test_defaults(self, tmp_path):
        assert SiteConfig(tmp_path / "config.json").og_config() == DEFAULT_OG_CONFIG

    @pytest.mark.asyncio
    async def test_update_keeps_setup_state(self, tmp_path):
        path = tmp_path / "config.json"
        config = SiteConfig(path)
        await config.claim_admin("42")
        assert await config.update_og({"title": "My Stickers", "description": ""}) is True

        og = config.og_config()
        assert og["title"] == "My Stickers"
        assert og["description"] == DEFAULT_OG_CONFIG["description"]

        reloaded = SiteConfig(path)
        assert reloaded.og_config()["title"] == "My Stickers"
        assert reloaded.admin_user_id == "42"
