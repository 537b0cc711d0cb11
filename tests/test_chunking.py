"""
Unit tests for paragraph-aware chunking.
"""
from docparse.processing.chunking import split_text_into_chunks

PARAGRAPH = " ".join(["word"] * 60)  # 299 chars


def test_empty_text_has_no_chunks():
    assert split_text_into_chunks("") == []
    assert split_text_into_chunks("  \n\n ") == []


def test_short_trailing_chunk_is_dropped():
    assert split_text_into_chunks("A short note.") == []


def test_single_chunk_spans_whole_text():
    text = "\n\n".join([PARAGRAPH, PARAGRAPH])
    chunks = split_text_into_chunks(text, min_chunk_size=100)

    assert len(chunks) == 1
    assert chunks[0].chunk_index == 0
    assert chunks[0].start_position == 0
    assert chunks[0].end_position == len(text)
    assert chunks[0].content == text


def test_overflow_starts_new_chunk_with_word_overlap():
    text = "\n\n".join([PARAGRAPH] * 3)
    chunks = split_text_into_chunks(text, max_chunk_size=700, overlap_size=50, min_chunk_size=10)

    assert [c.chunk_index for c in chunks] == [0, 1]
    assert chunks[0].content == "\n\n".join([PARAGRAPH] * 2)
    assert chunks[0].end_position == 602
    overlap = " ".join(["word"] * 10)
    assert chunks[1].content == overlap + "\n\n" + PARAGRAPH
    assert chunks[1].start_position == 602 - len(overlap)
    assert chunks[1].end_position == len(text)
    assert all(len(c.content) <= 700 for c in chunks)


def test_zero_overlap_starts_clean():
    text = "\n\n".join([PARAGRAPH] * 3)
    chunks = split_text_into_chunks(text, max_chunk_size=310, overlap_size=0, min_chunk_size=10)

    assert len(chunks) == 3
    assert all(c.content == PARAGRAPH for c in chunks)


def test_to_dict_fields():
    text = "\n\n".join([PARAGRAPH, PARAGRAPH])
    chunk = split_text_into_chunks(text, min_chunk_size=1)[0]
    assert set(chunk.to_dict()) == {"chunk_index", "content", "start_position", "end_position"}
