# Posts queued notice files to the notice channel, oldest name first
import os
from typing import List


class NoticeRunner:
    def __init__(self, notice_dir: str, platform, logger):
        self.notice_dir = notice_dir
        self.platform = platform
        self.logger = logger

    def pending(self) -> List[str]:
        try:
            entries = sorted(os.scandir(self.notice_dir), key=lambda entry: entry.name)
        except FileNotFoundError:
            return []
        return [entry.path for entry in entries if entry.is_file()]

    async def run_all(self, channel_id: str, bot_user_id: int) -> int:
        sent = 0
        for path in self.pending():
            self.logger.info(f"Processing notice file: {path}")
            with open(path, "r", encoding="utf-8") as handle:
                content = handle.read()
            await self.platform.send_message(channel_id, content.replace("@me", f"<@!{bot_user_id}>"))
            os.unlink(path)
            sent += 1
        return sent
