import datetime

from unifeed import ZERO_TIME, Enclosure, Image, parse

UTC = datetime.timezone.utc
NOW = datetime.datetime(2024, 1, 3, 10, 0, tzinfo=UTC)

RSS_2_0 = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0">
  <channel>
    <title>Liftoff News</title>
    <link>http://liftoff.msfc.nasa.gov/</link>
    <description>Liftoff to Space Exploration.</description>
    <language>en-us</language>
    <item>
      <title>Star City</title>
      <link>http://liftoff.msfc.nasa.gov/news/2003/news-starcity.asp</link>
      <description>How do Americans get ready to work with Russians aboard the International Space Station?</description>
      <pubDate>Sun, 06 Sep 2009 16:45:00 +0000</pubDate>
      <guid>http://liftoff.msfc.nasa.gov/2003/06/03.html#item573</guid>
    </item>
    <item>
      <title>Broken date</title>
      <description>Sky watchers in Europe, Asia, and parts of Alaska and Canada.</description>
      <pubDate>garbled</pubDate>
      <guid>http://liftoff.msfc.nasa.gov/2003/05/30.html#item572</guid>
    </item>
  </channel>
</rss>
"""

RSS_CONTENT_ENCODED = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example</title>
    <language>en</language>
    <author>someone</author>
    <item>
      <title>Example entry</title>
      <description>Here is some text containing an interesting description.</description>
      <content:encoded><![CDATA[<p><a href="https://example.com/">Example.com</a> is an example site.</p>]]></content:encoded>
      <guid>7bd204c6-1655-4c27-aeee-53f933c5395f</guid>
      <pubDate>Sun, 06 Sep 2009 16:45:00 +0000</pubDate>
    </item>
  </channel>
</rss>
"""

RSS_ENCLOSURE = b"""<?xml version="1.0" encoding="utf-8"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>Podcast</title>
    <category text="Technology"/>
    <category>News</category>
    <itunes:image href="http://example.com/cover.png"/>
    <image>
      <title>Podcast logo</title>
      <url>http://example.com/logo.png</url>
      <width>144</width>
      <height>-5</height>
    </image>
    <item>
      <title>Episode 1</title>
      <guid>ep-1</guid>
      <category>Audio</category>
      <category>Interviews</category>
      <enclosure url="http://example.com/ep1.mp3" type="audio/mpeg" length="12345"/>
      <pubDate>Sat, 14 May 2016 15:39:34 GMT</pubDate>
    </item>
  </channel>
</rss>
"""


def test_parse_item_len():
    feed = parse(RSS_2_0, now=NOW)
    assert len(feed.items) == 2
    assert feed.unread == 2
    assert feed.item_map == {item.id for item in feed.items}


def test_channel_fields():
    feed = parse(RSS_2_0, now=NOW)
    assert feed.title == "Liftoff News"
    assert feed.link == "http://liftoff.msfc.nasa.gov/"
    assert feed.description == "Liftoff to Space Exploration."
    assert feed.language == "en-us"
    assert feed.author == ""
    assert feed.image is None
    assert feed.categories == []


def test_channel_properties():
    feed = parse(RSS_CONTENT_ENCODED, now=NOW)
    assert feed.language == "en"
    assert feed.author == "someone"


def test_author_falls_back_to_managing_editor():
    xml = (
        b'<rss version="2.0"><channel><title>t</title>'
        b"<managingEditor>editor@example.com</managingEditor>"
        b"</channel></rss>"
    )
    assert parse(xml, now=NOW).author == "editor@example.com"


def test_item_fields():
    item = parse(RSS_2_0, now=NOW).items[0]
    assert item.id == "http://liftoff.msfc.nasa.gov/2003/06/03.html#item573"
    assert item.title == "Star City"
    assert item.link == "http://liftoff.msfc.nasa.gov/news/2003/news-starcity.asp"
    assert item.summary.startswith("How do Americans")
    assert item.content == ""
    assert item.read is False
    assert item.enclosures == []


def test_parse_content_encoded():
    item = parse(RSS_CONTENT_ENCODED, now=NOW).items[0]
    assert item.content == (
        '<p><a href="https://example.com/">Example.com</a> is an example site.</p>'
    )
    assert item.summary == "Here is some text containing an interesting description."


def test_parse_item_date_ok():
    item = parse(RSS_2_0, now=NOW).items[0]
    assert item.date_valid
    assert item.date == datetime.datetime(2009, 9, 6, 16, 45, tzinfo=UTC)


def test_parse_item_date_failure_keeps_siblings():
    diagnostics = []
    feed = parse(RSS_2_0, now=NOW, diagnostics=diagnostics)
    item = feed.items[1]
    assert item.date_valid is False
    assert item.date == ZERO_TIME
    assert str(item.date) == "0001-01-01 00:00:00+00:00"
    assert [d.code for d in diagnostics] == ["invalid-date"]
    assert diagnostics[0].context == "Broken date"


def test_dc_date_preferred_over_pub_date():
    xml = b"""<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
    <channel><item>
      <guid>a</guid>
      <pubDate>Sun, 06 Sep 2009 16:45:00 +0000</pubDate>
      <dc:date>2010-01-02T03:04:05Z</dc:date>
    </item></channel></rss>"""
    item = parse(xml, now=NOW).items[0]
    assert item.date == datetime.datetime(2010, 1, 2, 3, 4, 5, tzinfo=UTC)


def test_pub_date_used_when_dc_date_unparseable():
    xml = b"""<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
    <channel><item>
      <guid>a</guid>
      <dc:date>garbled</dc:date>
      <pubDate>Sun, 06 Sep 2009 16:45:00 +0000</pubDate>
    </item></channel></rss>"""
    item = parse(xml, now=NOW).items[0]
    assert item.date_valid
    assert item.date == datetime.datetime(2009, 9, 6, 16, 45, tzinfo=UTC)


def test_missing_date():
    xml = b'<rss version="2.0"><channel><item><guid>a</guid></item></channel></rss>'
    diagnostics = []
    item = parse(xml, now=NOW, diagnostics=diagnostics).items[0]
    assert item.date_valid is False
    assert item.date == ZERO_TIME
    assert diagnostics == []


def test_parse_categories():
    feed = parse(RSS_ENCLOSURE, now=NOW)
    assert feed.categories == ["Technology", "News"]
    assert feed.items[0].categories == ["Audio", "Interviews"]
    assert parse(RSS_CONTENT_ENCODED, now=NOW).items[0].categories == []


def test_channel_image_is_merged_and_coerced():
    feed = parse(RSS_ENCLOSURE, now=NOW)
    assert feed.image == Image(
        title="Podcast logo",
        href="http://example.com/cover.png",
        url="http://example.com/logo.png",
        width=144,
        height=0,
    )


def test_declared_enclosure():
    item = parse(RSS_ENCLOSURE, now=NOW).items[0]
    assert item.enclosures == [
        Enclosure(url="http://example.com/ep1.mp3", type="audio/mpeg", length=12345)
    ]
    assert item.date == datetime.datetime(2016, 5, 14, 15, 39, 34, tzinfo=UTC)


def test_enclosure_without_type_or_valid_length():
    xml = b"""<rss version="2.0"><channel><item>
      <guid>a</guid><title>Episode</title>
      <enclosure url="http://example.com/show.mp3" length="lots"/>
    </item></channel></rss>"""
    diagnostics = []
    item = parse(xml, now=NOW, diagnostics=diagnostics).items[0]
    assert item.enclosures == [
        Enclosure(url="http://example.com/show.mp3", type="audio/mpeg", length=0)
    ]
    codes = {d.code for d in diagnostics}
    assert codes == {"guessed-enclosure-type", "bad-enclosure-length"}


def test_media_thumbnail_becomes_enclosure():
    xml = b"""<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
    <channel><item>
      <guid>a</guid>
      <media:thumbnail url="http://example.com/image.jpg" width="75" height="50"/>
    </item></channel></rss>"""
    item = parse(xml, now=NOW).items[0]
    assert item.enclosures == [
        Enclosure(url="http://example.com/image.jpg", type="image/jpg", length=0)
    ]


def test_media_enclosure_is_appended_after_declared_ones():
    xml = b"""<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
    <channel><item>
      <guid>a</guid>
      <media:content url="http://example.com/video.mp4" type="video/mp4" fileSize="99">
        <media:thumbnail url="http://example.com/still.png"/>
      </media:content>
      <enclosure url="http://example.com/a.mp3" type="audio/mpeg" length="10"/>
      <enclosure url="http://example.com/b.mp3" type="audio/mpeg" length="20"/>
    </item></channel></rss>"""
    enclosures = parse(xml, now=NOW).items[0].enclosures
    assert [e.url for e in enclosures] == [
        "http://example.com/a.mp3",
        "http://example.com/b.mp3",
        "http://example.com/still.png",
    ]
    assert enclosures[-1].type == "image/png"
    assert enclosures[-1].length == 0


def test_multiple_links():
    single = b"""<rss version="2.0"><channel><item>
      <link>link_a</link></item></channel></rss>"""
    multiple = b"""<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
    <channel><item>
      <atom:link rel="self" href="link_self" type="application/rss+xml"/>
      <link rel="alternate">link_alt</link>
      <link>link_b</link>
    </item></channel></rss>"""
    assert parse(single, now=NOW).items[0].link == "link_a"
    assert parse(multiple, now=NOW).items[0].link == "link_b"


def test_channel_link_skips_decorated_links():
    xml = b"""<rss version="2.0" xmlns:atom="http://www.w3.org/2005/Atom">
    <channel>
      <atom:link rel="self" href="http://example.com/feed.xml"/>
      <link>http://example.com/</link>
    </channel></rss>"""
    assert parse(xml, now=NOW).link == "http://example.com/"


def test_item_identity_falls_back_to_link():
    xml = b"""<rss version="2.0"><channel><item>
      <guid>  </guid>
      <link>http://example.com/post</link>
    </item></channel></rss>"""
    item = parse(xml, now=NOW).items[0]
    assert item.id == "http://example.com/post"


def test_item_without_id_or_link_is_skipped():
    xml = b"""<rss version="2.0"><channel>
      <item><title>Nameless</title><description>no id</description></item>
      <item><guid>kept</guid></item>
    </channel></rss>"""
    diagnostics = []
    feed = parse(xml, now=NOW, diagnostics=diagnostics)
    assert [item.id for item in feed.items] == ["kept"]
    assert feed.unread == 1
    assert diagnostics[0].code == "item-skipped"
    assert diagnostics[0].context == "Nameless"


def test_duplicate_items_are_dropped():
    xml = b"""<rss version="2.0"><channel>
      <item><guid>same</guid><title>first</title></item>
      <item><guid>other</guid><title>other</title></item>
      <item><guid>same</guid><title>second</title></item>
      <item><link>same</link><title>third</title></item>
    </channel></rss>"""
    diagnostics = []
    feed = parse(xml, now=NOW, diagnostics=diagnostics)
    assert [item.title for item in feed.items] == ["first", "other"]
    assert feed.item_map == {"same", "other"}
    assert feed.unread == len(feed.items) == 2
    assert diagnostics == []


def test_parse_is_idempotent():
    assert parse(RSS_ENCLOSURE, now=NOW) == parse(RSS_ENCLOSURE, now=NOW)


def test_optional_field_flags():
    xml = b"""<rss version="2.0"
      xmlns:content="http://purl.org/rss/1.0/modules/content/"
      xmlns:media="http://search.yahoo.com/mrss/">
    <channel>
      <category>feed-tag</category>
      <item>
        <guid>a</guid>
        <content:encoded>Body</content:encoded>
        <category>entry-tag</category>
        <enclosure url="http://example.com/a.mp3" type="audio/mpeg" length="1"/>
        <media:thumbnail url="http://example.com/t.jpg"/>
      </item>
    </channel></rss>"""
    trimmed = parse(
        xml,
        now=NOW,
        include_content=False,
        include_tags=False,
        include_enclosures=False,
    )
    item = trimmed.items[0]
    assert trimmed.categories == []
    assert item.content == ""
    assert item.categories == []
    assert item.enclosures == []

    full = parse(xml, now=NOW).items[0]
    assert full.content == "Body"
    assert full.categories == ["entry-tag"]
    assert len(full.enclosures) == 2


def test_str_rendering():
    feed = parse(RSS_2_0, now=NOW)
    text = str(feed)
    assert "Liftoff News" in text
    assert "Star City" in text
    assert "unknown date" in str(feed.items[1])


def test_plain_elements_win_over_namespaced_siblings():
    xml = b"""<rss version="2.0"
        xmlns:media="http://search.yahoo.com/mrss/"
        xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
      <channel>
        <itunes:title>Show name</itunes:title>
        <title>Channel title</title>
        <item>
          <guid>a</guid>
          <media:title>Clip title</media:title>
          <media:description>Clip text</media:description>
          <title>Item title</title>
          <description>Item text</description>
        </item>
        <item>
          <guid>b</guid>
          <media:title>Only namespaced</media:title>
        </item>
      </channel>
    </rss>"""
    feed = parse(xml, now=NOW)
    assert feed.title == "Channel title"
    assert feed.items[0].title == "Item title"
    assert feed.items[0].summary == "Item text"
    assert feed.items[1].title == "Only namespaced"
