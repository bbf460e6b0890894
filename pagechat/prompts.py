SEGMENT_SYSTEM = """You are an expert at analyzing articles and breaking them down into clear, logical sections.
For each section, provide a title and a concise summary of the content.

Format:
- Put the section title alone on the first line.
- Put the section content on the following lines.
- Separate sections with exactly one blank line.
- Do not add any text before the first section or after the last one.
"""


ASSISTANT_NAME = "Website Assistant"

ASSISTANT_INSTRUCTIONS = """You are a helpful assistant that answers questions about webpage content.
Ground every answer in the webpage the user shared at the start of the conversation.
If the page does not contain the answer, say so plainly.
Keep answers short enough to be read aloud.
"""


CONTEXT_ANSWER_SYSTEM = """You answer questions about an article using only the provided sections.
Be concise and accurate; if the sections do not contain the answer, say so.
"""


def seed_message(title: str, url: str, content: str) -> str:
    return (
        "Please analyze this webpage content and prepare to answer questions about it.\n\n"
        f"Title: {title}\n"
        f"URL: {url}\n"
        f"Content: {content}"
    )


def context_question(context: str, question: str) -> str:
    return (
        "ARTICLE_SECTIONS:\n"
        f"{context}\n\n"
        f"QUESTION: {question}\n"
    )
