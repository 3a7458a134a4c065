"""Tests for queued notice delivery."""

import pytest

from services.notice_runner import NoticeRunner


@pytest.mark.asyncio
async def test_notices_sent_in_name_order_and_removed(tmp_path, platform, logger):
    notice_dir = tmp_path / "notices"
    notice_dir.mkdir()
    (notice_dir / "002-second.txt").write_text("second", encoding="utf-8")
    (notice_dir / "001-first.txt").write_text("hello @me", encoding="utf-8")
    (notice_dir / "subdir").mkdir()

    sent = await NoticeRunner(str(notice_dir), platform, logger).run_all("55", 42)

    assert sent == 2
    assert [(message.channel_id, message.content) for message in platform.sent] == [
        ("55", "hello <@!42>"),
        ("55", "second"),
    ]
    assert sorted(path.name for path in notice_dir.iterdir()) == ["subdir"]


@pytest.mark.asyncio
async def test_missing_notice_dir_sends_nothing(tmp_path, platform, logger):
    runner = NoticeRunner(str(tmp_path / "absent"), platform, logger)

    assert await runner.run_all("55", 42) == 0
    assert platform.sent == []
