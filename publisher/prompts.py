"""Prompt text sent to the generative text service, per profile."""

STRUCTURE_GUIDE = """
You are an assistant that writes {kind} instrumental structures for a song generator.
Keep the result under 2800 characters and use these tools:

1. Meta tags for style and genre, e.g. {genres}.
2. Section annotations such as [Intro], [Drum Beat], [Bass Line], [Verse], [Chorus],
   [Break], [Instrumental Interlude], [Build], [Breakdown], [Outro].
3. Non-singable spacer lines between sections, for example:
   [Verse]
   ┳┻┳┻┳┻┳┻┳┻┳┻
4. Chord tags like [Am], [F], [G], [Em], chosen to match the mood.
5. Natural endings with [fade out], [outro] or [end].
6. Sound effects in uppercase brackets, e.g. {effects}.
7. A summary inside <INSTRUMENTAL_DETAILS></INSTRUMENTAL_DETAILS> listing GENRES, STYLE,
   MOOD, ARRANGEMENT, INSTRUMENTATION, TEMPO, PRODUCTION, DYNAMICS and EMOTIONS.
8. Onomatopoeic "lyrics" for instrument hits, e.g. {sounds}.
"""

TAG_RULES = """
You are an assistant that writes tags for a {kind} instrumental song.
Letter case rules:
- ALL CAPS for genres.
- Title Case for descriptors.
- lower case for instruments.
Include mood, sub-genre and instruments, separated by commas. Examples:
{examples}
Provide only the tags without any additional text.
"""

LO_FI = {
    "song_system": STRUCTURE_GUIDE.format(
        kind="lo-fi chill hip hop",
        genres="[Lo-fi], [Chill], [Jazz-hop], [Ambient], [Downtempo], [Soulful]",
        effects="[BIRDS CHIRPING FX], [RAIN ON WINDOW FX]",
        sounds="[Percussion Break] . .! .. .!, [mellow keys] dum-da-dum",
    ),
    "song_user": "Generate a lo-fi chill hip hop instrumental structure. "
                 "Provide only the structure without any additional text.",
    "title_system": "You are an assistant that names lo-fi instrumental songs. The title should "
                    "evoke chill, ambient and relaxing themes. Provide only the title without "
                    "any additional text.",
    "title_user": "Generate a title for this lo-fi instrumental song:\n\n{structure}",
    "tags_system": TAG_RULES.format(
        kind="lo-fi",
        examples="- Calm LO-FI, gentle piano, smooth beats\n"
                 "- Relaxed CHILLHOP, mellow guitar, ambient sounds",
    ),
    "tags_user": "Generate tags for this lo-fi instrumental song:\n\n{structure}",
    "cover_system": "You write prompts for an image model that paints anime-style chill lo-fi "
                    "scenes. Describe a relaxing, atmospheric, aesthetically pleasing scene. "
                    "Return only the prompt without any additional text.",
    "cover_user": "Generate an image prompt for an anime chill lo-fi scene titled: {title}",
    "description": "Relax and unwind with this lo-fi chill hip hop instrumental. "
                   "Perfect for studying, relaxing and chilling out.",
    "video_tags": (
        "lo-fi", "chill", "hip hop", "instrumental", "relaxing", "study music",
        "ambient", "atmospheric", "chillhop", "downtempo",
    ),
    "title_template": "lo-fi chill beat - {title}",
}

TYPE_BEAT = {
    "song_system": STRUCTURE_GUIDE.format(
        kind="hip hop",
        genres="[Boom Bap], [Trap], [Jazz-hop], [Sample based], [Funky] or producer names",
        effects="[VINYL SCRATCH FX], [CROWD NOISE FX]",
        sounds="[Drum Beat] bap-bap-bap, [Vinyl Scratch] wicka-wicka",
    ),
    "song_user": "Generate a hip hop instrumental structure inspired by two styles: "
                 "{style_a} and {style_b}. Provide only the structure without any additional text.",
    "title_system": "You are an assistant that names hip hop instrumental songs. The title should "
                    "reflect the requested styles. Provide only the title without any additional text.",
    "title_user": "Generate a title for a hip hop instrumental inspired by {style_a} and {style_b}:"
                  "\n\n{structure}",
    "tags_system": TAG_RULES.format(
        kind="hip hop",
        examples="- Energetic BOOM BAP, punchy drums, jazzy samples\n"
                 "- Nostalgic JAZZ-HOP, soulful piano, classic loops",
    ),
    "tags_user": "Generate tags for a hip hop instrumental inspired by {style_a} and {style_b}:"
                 "\n\n{structure}",
    "cover_system": "You write prompts for an image model that paints anime-style scenes with a "
                    "hip hop theme: gritty, street vibe, nostalgic. Never name real producers or "
                    "artists. Return only the prompt without any additional text.",
    "cover_user": "Generate an image prompt for an anime hip hop scene inspired by {style_a} and "
                  "{style_b}, titled: {title}",
    "description": "{style_a} x {style_b} type beat. Free for use.",
    "video_tags": ("hip hop", "boom bap", "type beat", "free beats"),
    "title_template": "[FREE] {style_a} x {style_b} type beat - {title}",
}

STYLE_CATALOG = (
    "J Dilla", "Madlib", "Dr. Dre", "MF DOOM", "Kanye West", "DJ Premier",
    "Pete Rock", "RZA", "Timbaland", "Metro Boomin", "Alchemist",
    "Pharrell Williams", "Jazz-hop", "Trap", "Funky", "Eminem", "Nujabes",
    "Boom Bap", "Lo-fi",
)
