# Prefix commands: admin actions, pixiv lookups and the air-quality query
import re

from discord.ext import commands

from storage.bridge_registry import link_channels, set_notice_channel

DIGITS = re.compile(r"[0-9]+")


def register_commands(bot: commands.Bot, app) -> None:
    operator_role = app.config.discord.operator_role

    @bot.group(name="sudo", hidden=True)
    @commands.has_role(operator_role)
    async def sudo(ctx):
        pass

    @sudo.command(name="set-notice-channel")
    @commands.has_role(operator_role)
    async def sudo_set_notice_channel(ctx):
        channel_id = str(ctx.channel.id)
        set_notice_channel(app.state, channel_id)
        app.registry.save(app.state)
        app.logger.info(f"Notice channel set to {channel_id} by {ctx.author}")
        try:
            await ctx.message.delete()
        except Exception as exc:
            app.logger.warning(f"Could not delete command message {ctx.message.id}: {exc}")
        await app.notices.run_all(channel_id, bot.user.id)

    @sudo.command(name="link")
    @commands.has_role(operator_role)
    async def sudo_link(ctx, target_id: str):
        if not DIGITS.fullmatch(target_id):
            await ctx.send(":x: 채널 ID는 숫자로만 이루어져 있어요.")
            return
        source_id = str(ctx.channel.id)
        if link_channels(app.state, source_id, target_id):
            app.registry.save(app.state)
            app.logger.info(f"Linked channel {source_id} -> {target_id}")
            await ctx.send(f":white_check_mark: <#{target_id}> 채널로 연결했어요.")
        else:
            await ctx.send(f":x: 이미 <#{target_id}> 채널과 연결되어 있어요.")

    if app.air is not None:
        @bot.command(name="미세먼지")
        async def air_query(ctx, *, query: str = ""):
            if not query.strip():
                await ctx.send(":x: 위치를 알려 주세요.")
                return
            try:
                await app.air.process_query(app.platform, str(ctx.channel.id), query.strip())
            except Exception as exc:
                app.logger.error(f"Air query {query!r} failed: {exc}", exc_info=True)
                await app.router.report_failure(ctx.message, exc)

    @bot.group(name="픽시브", invoke_without_command=True)
    async def pixiv(ctx):
        if app.pixiv.has_session():
            await ctx.send(":white_check_mark: 서버에 계정이 등록되어 있어요.")
        else:
            await ctx.send(":x: 계정 정보가 없네요.")

    @pixiv.command(name="유저")
    async def pixiv_user(ctx, *args):
        if len(args) != 1:
            await ctx.send(":x: 유저 ID를 한 개 입력해 주세요.")
            return
        if not DIGITS.fullmatch(args[0]):
            await ctx.send(":x: 유저 ID는 숫자로만 이루어져 있어요.")
            return
        try:
            await app.pixiv.process_user(app.router.context_for(ctx.message), args[0])
        except Exception as exc:
            app.logger.error(f"pixiv user {args[0]} failed: {exc}", exc_info=True)
            await app.router.report_failure(ctx.message, exc)

    @pixiv.command(name="일러스트")
    async def pixiv_illust(ctx, *args):
        if len(args) != 1:
            await ctx.send(":x: 일러스트 ID를 한 개 입력해 주세요.")
            return
        if not DIGITS.fullmatch(args[0]):
            await ctx.send(":x: 일러스트 ID는 숫자로만 이루어져 있어요.")
            return
        try:
            await app.pixiv.process_illust(app.router.context_for(ctx.message), args[0])
        except Exception as exc:
            app.logger.error(f"pixiv illust {args[0]} failed: {exc}", exc_info=True)
            await app.router.report_failure(ctx.message, exc)
