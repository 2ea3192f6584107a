from __future__ import annotations

DISCORD_MAX_MESSAGE_LEN = 1900


def _split_line(line: str, limit: int) -> list[str]:
    pieces: list[str] = []
    while len(line) > limit:
        cut = line.rfind(" ", 0, limit + 1)
        if cut <= 0:
            cut = limit
        pieces.append(line[:cut].rstrip())
        line = line[cut:].lstrip()
    pieces.append(line)
    return pieces


def chunk_text(text: str, limit: int = DISCORD_MAX_MESSAGE_LEN) -> list[str]:
    """Pack whole lines into parts of at most ``limit`` characters.

    History replies are one meal per line, so a meal never straddles two
    messages unless its own line is longer than ``limit``.
    """
    parts: list[str] = []
    current = ""
    for line in (text or "").splitlines():
        for piece in _split_line(line, limit):
            candidate = f"{current}\n{piece}" if current else piece
            if len(candidate) <= limit:
                current = candidate
                continue
            parts.append(current)
            current = piece
    if current or not parts:
        parts.append(current)
    return parts


async def reply_chunked(ctx, text: str) -> None:
    parts = chunk_text(text)
    await ctx.reply(parts[0], mention_author=False)
    for part in parts[1:]:
        await ctx.send(part)
