from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import SendMessage

from post_scheduler.core.exceptions import StorageError
from post_scheduler.services.dispatcher import NO_DESTINATION_ERROR, PostDispatcher
from post_scheduler.storage.repository import InMemoryPostRepository
from post_scheduler.telegram_bot.models import PostStatus
from tests.conftest import make_post


class FlakyWriteRepository(InMemoryPostRepository):
    """Status write-back fails a given number of times"""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.write_attempts = 0

    async def mark_status(self, post_id, status, error=None):
        self.write_attempts += 1
        if self.write_attempts <= self.failures:
            raise StorageError("database is locked")
        await super().mark_status(post_id, status, error)


async def test_text_post_is_sent(repository, dispatcher, fake_bot):
    post = make_post()
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    fake_bot.send_message.assert_awaited_once()
    assert fake_bot.send_message.call_args.kwargs["chat_id"] == "@mychannel"
    assert fake_bot.send_message.call_args.kwargs["text"] == "Hello"
    assert outcome.status == "sent"
    assert outcome.message_id == 101
    assert (await repository.get(post.id)).status == PostStatus.SENT


async def test_two_images_go_out_as_one_media_group(repository, dispatcher, fake_bot):
    post = make_post(image_sources=["https://x/1.png", "https://x/2.png"])
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    fake_bot.send_media_group.assert_awaited_once()
    media = fake_bot.send_media_group.call_args.kwargs["media"]
    assert len(media) == 2
    assert media[0].caption == "Hello"
    assert media[1].caption is None
    assert outcome.status == "sent"
    assert outcome.message_id == 300


async def test_platform_rejection_marks_post_failed(repository, dispatcher, fake_bot):
    fake_bot.send_message.side_effect = TelegramBadRequest(
        method=SendMessage(chat_id="@mychannel", text="Hello"),
        message="chat not found"
    )
    post = make_post()
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "failed"
    assert outcome.error == "chat not found"
    assert outcome.to_result() == {"id": post.id, "status": "failed", "error": "chat not found"}
    stored = await repository.get(post.id)
    assert stored.status == PostStatus.FAILED
    assert stored.last_error == "chat not found"


async def test_no_chat_targets_never_reaches_telegram(repository, dispatcher, fake_bot):
    post = make_post(chat_targets=[])
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "failed"
    assert outcome.error == NO_DESTINATION_ERROR
    fake_bot.send_message.assert_not_awaited()
    fake_bot.send_photo.assert_not_awaited()
    fake_bot.send_media_group.assert_not_awaited()
    assert (await repository.get(post.id)).status == PostStatus.FAILED


async def test_every_chat_gets_the_post(repository, dispatcher, fake_bot):
    post = make_post(chat_targets=["@one", "-100200300"])
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    chats = [c.kwargs["chat_id"] for c in fake_bot.send_message.call_args_list]
    assert chats == ["@one", "-100200300"]
    assert outcome.status == "sent"
    assert [d.chat_id for d in outcome.deliveries] == ["@one", "-100200300"]


async def test_one_failing_chat_fails_the_whole_post(repository, dispatcher, fake_bot):
    fake_bot.send_message.side_effect = [
        TelegramBadRequest(method=SendMessage(chat_id="@two", text="Hello"), message="chat not found"),
    ]
    post = make_post(chat_targets=["@two", "@three"])
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "failed"
    assert fake_bot.send_message.await_count == 1
    assert (await repository.get(post.id)).status == PostStatus.FAILED


async def test_already_claimed_post_is_skipped(repository, dispatcher, fake_bot):
    post = make_post()
    await repository.add(post)
    assert await repository.claim(post.id)

    outcome = await dispatcher.dispatch(post)

    assert outcome.skipped
    fake_bot.send_message.assert_not_awaited()
    assert (await repository.get(post.id)).status == PostStatus.SENDING


async def test_unexpected_exception_marks_post_failed(repository, dispatcher, fake_bot):
    fake_bot.send_message.side_effect = RuntimeError("boom")
    post = make_post()
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "failed"
    assert "boom" in outcome.error
    assert (await repository.get(post.id)).status == PostStatus.FAILED


async def test_write_back_is_retried(delivery):
    repository = FlakyWriteRepository(failures=1)
    dispatcher = PostDispatcher(repository, delivery, write_back_retries=3, write_back_delay=0)
    post = make_post()
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "sent"
    assert not outcome.inconsistent
    assert repository.write_attempts == 2
    assert (await repository.get(post.id)).status == PostStatus.SENT


async def test_write_back_giving_up_reports_inconsistent_state(delivery, fake_bot):
    repository = FlakyWriteRepository(failures=10)
    dispatcher = PostDispatcher(repository, delivery, write_back_retries=3, write_back_delay=0)
    post = make_post()
    await repository.add(post)

    outcome = await dispatcher.dispatch(post)

    assert outcome.inconsistent
    assert outcome.to_result()["inconsistent"] is True
    assert repository.write_attempts == 3
    # Захват остаётся, повторной отправки не будет
    stored = await repository.get(post.id)
    assert stored.status == PostStatus.SENDING
    assert await repository.fetch_due() == []


class BrokenRepository(InMemoryPostRepository):
    """Repository raising a non-storage error on the chosen call"""

    def __init__(self, broken: str):
        super().__init__()
        self.broken = broken

    async def claim(self, post_id):
        if self.broken == "claim":
            raise RuntimeError("driver crashed")
        return await super().claim(post_id)

    async def mark_status(self, post_id, status, error=None):
        if self.broken == "mark_status":
            raise RuntimeError("driver crashed")
        await super().mark_status(post_id, status, error)


async def test_unexpected_claim_error_skips_post(delivery, fake_bot):
    repository = BrokenRepository("claim")
    post = make_post()
    await repository.add(post)
    dispatcher = PostDispatcher(repository, delivery, write_back_retries=1, write_back_delay=0)

    outcome = await dispatcher.dispatch(post)

    assert outcome.skipped
    assert "driver crashed" in outcome.error
    fake_bot.send_message.assert_not_awaited()


async def test_unexpected_write_back_error_is_reported_not_raised(delivery, fake_bot):
    repository = BrokenRepository("mark_status")
    post = make_post()
    await repository.add(post)
    dispatcher = PostDispatcher(repository, delivery, write_back_retries=2, write_back_delay=0)

    outcome = await dispatcher.dispatch(post)

    assert outcome.status == "sent"
    assert outcome.inconsistent is True
    fake_bot.send_message.assert_awaited_once()
    assert (await repository.get(post.id)).status == PostStatus.SENDING
