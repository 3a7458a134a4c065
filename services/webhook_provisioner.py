# Lazily creates one bridge webhook per target channel and remembers it in the registry
from core.errors import ProvisionError
from core.models import BridgeState, WebhookHandle


class WebhookProvisioner:
    def __init__(self, platform, registry, logger, webhook_name: str = "루미나 브릿지"):
        self.platform = platform
        self.registry = registry
        self.logger = logger
        self.webhook_name = webhook_name

    async def get_or_create(self, state: BridgeState, channel_id: str) -> WebhookHandle:
        cached = state.webhooks.get(channel_id)
        if cached is not None:
            return cached

        # No lock: two concurrent calls for the same channel both create a webhook
        # and the later write wins, the earlier webhook stays orphaned on Discord.
        try:
            webhook = await self.platform.create_webhook(channel_id, self.webhook_name)
        except Exception as exc:
            self.logger.error(f"Failed to create webhook for channel {channel_id}: {exc}", exc_info=True)
            raise ProvisionError(channel_id) from exc

        state.webhooks[channel_id] = webhook
        self.registry.save(state)
        self.logger.info(f"Created webhook {webhook.id} for channel {channel_id}")
        return webhook
