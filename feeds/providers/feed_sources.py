"""Default feed sources shipped with the app."""

from __future__ import annotations

from feeds.core.sync import SourceEntry

DEFAULT_SOURCES: tuple[SourceEntry, ...] = (
    # AI/Tech blogs
    SourceEntry("Google AI Blog", "https://blog.google/technology/ai/rss/"),
    SourceEntry("AWS Machine Learning", "https://aws.amazon.com/blogs/machine-learning/feed/"),
    SourceEntry("Microsoft News", "https://news.microsoft.com/source/feed/"),
    SourceEntry("ZSA Blog", "https://blog.zsa.io/posts.rss"),
    SourceEntry("One Useful Thing", "https://www.oneusefulthing.org/feed"),
    SourceEntry("Simon Willison", "https://simonwillison.net/atom/entries/"),
    SourceEntry("Zvi Mowshowitz", "https://thezvi.substack.com/feed"),
    SourceEntry("OpenAI News", "https://openai.com/news/rss.xml"),
    # YouTube
    SourceEntry(
        "Matthew Berman",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCawZsQWqfGSbCI5yjkdVkTA",
    ),
    SourceEntry(
        "Two Minute Papers",
        "https://www.youtube.com/feeds/videos.xml?channel_id=UCbfYPyITQ-7l4upoX8nvctg",
    ),
    # Podcasts
    SourceEntry("Latent Space Podcast", "https://api.substack.com/feed/podcast/69345.rss"),
    SourceEntry(
        "Practical AI Podcast",
        "https://feeds.transistor.fm/practical-ai-machine-learning-data-science-llm",
    ),
    SourceEntry("Cognitive Revolution Podcast", "https://api.substack.com/feed/podcast/1084089.rss"),
    SourceEntry("Forward Future Podcast", "https://anchor.fm/s/f7cac464/podcast/rss"),
    # Bluesky
    SourceEntry(
        "Ethan Mollick (Bluesky)",
        "https://bluestream.deno.dev/emollick.bsky.social?reply=exclude",
    ),
    SourceEntry(
        "Anthropic News",
        "https://raw.githubusercontent.com/Olshansk/rss-feeds/main/feeds/feed_anthropic_news.xml",
    ),
)
