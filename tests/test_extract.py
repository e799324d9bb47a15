import pytest

import html2quiz.extract as extract
from html2quiz.nodes import DocumentParseError, Element, Text, parse_document


def _doc(body: str) -> str:
    return f"<div class=\"entry-content\">\n{body}\n</div>"


NO_IMAGE_DOC = _doc(
    """<p class="question">1. What should you do at a red light?</p>
<p><strong>A. Stop the car.</strong><br>
B. Speed up.<br>
C. Sound the horn.</p>"""
)

IMAGE_DOC = _doc(
    """<p class="question">2.1 What does this sign mean?</p>
<div class="wp-block-image">
<figure class="aligncenter size-large"><img decoding="async" src="https://example.com/uploads/2020/02/sign-1.jpg"
    class="wp-image-6962" width="300" height="211"></figure>
</div>
<p>A. No entry.<br>
<strong>B. Give way.</strong><br>
C. Parking.</p>
<p class="question">3. Last question&nbsp;here</p>
<p>a. Yes<br><strong>b. No</strong></p>"""
)


def test_extract_question_without_image():
    questions = extract.extract_from_text(NO_IMAGE_DOC)

    assert len(questions) == 1
    question = questions[0]
    assert question.title == "What should you do at a red light?"
    assert question.image_src is None
    assert [c.text for c in question.answer_choices] == ["Stop the car.", "Speed up.", "Sound the horn."]
    assert [c.is_answer for c in question.answer_choices] == [True, False, False]
    assert question.correct_choices == [extract.AnswerChoice("Stop the car.", True)]


def test_extract_question_with_image_resumes_after_answer_paragraph():
    questions = extract.extract_from_text(IMAGE_DOC)

    assert [q.title for q in questions] == ["What does this sign mean?", "Last question here"]
    assert questions[0].image_src == "https://example.com/uploads/2020/02/sign-1.jpg"
    assert [c.text for c in questions[0].answer_choices] == ["No entry.", "Give way.", "Parking."]
    assert [c.is_answer for c in questions[0].answer_choices] == [False, True, False]
    assert questions[1].image_src is None
    assert questions[1].answer_choices == (
        extract.AnswerChoice("Yes", False),
        extract.AnswerChoice("No", True),
    )


def test_title_joins_text_of_nested_children():
    doc = _doc(
        """<p class="question">4. Which <em>one</em> is
   correct?</p>
<p><strong>A. This</strong></p>"""
    )
    questions = extract.extract_from_text(doc)
    assert questions[0].title == "Which one is correct?"


def test_paragraphs_before_first_marker_are_skipped():
    doc = _doc(
        """<p>Intro paragraph that is not a question.</p>
<h2>Section</h2>
<p class="question">1. Only question</p>
<p><strong>A. Yes</strong></p>
<p>Trailing text.</p>"""
    )
    questions = extract.extract_from_text(doc)
    assert len(questions) == 1
    assert questions[0].title == "Only question"


def test_multiple_or_no_marked_answers_are_kept():
    doc = _doc(
        """<p class="question">1. Pick two</p>
<p><strong>A. One</strong><br><strong>B. Two</strong><br>C. Three</p>
<p class="question">2. Pick none</p>
<p>A. One<br>B. Two</p>"""
    )
    first, second = extract.extract_from_text(doc)
    assert len(first.correct_choices) == 2
    assert second.correct_choices == []


def test_separator_text_is_not_an_answer_choice():
    doc = _doc(
        """<p class="question">1. Title</p>
<p>
   <strong>A. Right</strong>
   <br/>
   B. Wrong
</p>"""
    )
    (question,) = extract.extract_from_text(doc)
    assert [c.text for c in question.answer_choices] == ["Right", "Wrong"]


def test_figure_without_img_fails_without_partial_output():
    doc = _doc(
        """<p class="question">1. Fine question</p>
<p><strong>A. Yes</strong></p>
<p class="question">2. Broken question</p>
<div class="wp-block-image"><figure class="aligncenter"></figure></div>
<p>A. Something</p>"""
    )
    with pytest.raises(extract.ExtractionError) as excinfo:
        extract.extract_from_text(doc)

    err = excinfo.value
    assert err.expected == "figure missing img"
    assert err.question_index == 2
    assert err.title == "Broken question"
    assert "img" in str(err)


def test_image_container_without_figure_fails():
    doc = _doc(
        """<p class="question">1. Q</p>
<div class="wp-block-image"><p>no figure</p></div>
<p>A. x</p>"""
    )
    with pytest.raises(extract.ExtractionError, match="image container missing figure"):
        extract.extract_from_text(doc)


def test_img_without_src_fails():
    doc = _doc(
        """<p class="question">1. Q</p>
<div class="wp-block-image"><figure><img alt="x"></figure></div>
<p>A. x</p>"""
    )
    with pytest.raises(extract.ExtractionError, match="img missing src attribute"):
        extract.extract_from_text(doc)


def test_no_element_after_title_fails():
    doc = _doc("""<p class="question">1. Dangling</p>\n<h3>Nothing here</h3>""")
    with pytest.raises(extract.ExtractionError) as excinfo:
        extract.extract_from_text(doc)
    assert excinfo.value.expected == "no element after question title"
    assert excinfo.value.title == "Dangling"


def test_no_paragraph_after_image_reports_image_reference():
    doc = _doc(
        """<p class="question">1. Q</p>
<div class="wp-block-image"><figure><img src="https://example.com/a.png"></figure></div>"""
    )
    with pytest.raises(extract.ExtractionError) as excinfo:
        extract.extract_from_text(doc)
    assert excinfo.value.expected == "expected paragraph after image"
    assert excinfo.value.value == "https://example.com/a.png"


def test_custom_marker_configuration():
    config = extract.ExtractorConfig(question_class="q", image_class="pic", container_tag="section", bold_tag="b")
    doc = _doc(
        """<p class="question">ignored marker</p>
<p class="q">1. Custom</p>
<section class="pic"><figure><img src="/img/x.png"/></figure></section>
<p><b>A. Bold</b><br>B. Plain</p>"""
    )
    (question,) = extract.extract_from_text(doc, config)
    assert question.title == "Custom"
    assert question.image_src == "/img/x.png"
    assert [c.is_answer for c in question.answer_choices] == [True, False]


def test_extract_questions_on_built_nodes():
    root = Element(
        tag="body",
        children=(
            Text("\n"),
            Element(tag="p", attrs={"class": "question"}, children=(Text("7. Built"),)),
            Element(
                tag="p",
                children=(Element(tag="strong", children=(Text("A. Yes"),)), Text("B. No")),
            ),
        ),
    )
    (question,) = extract.extract_questions(root)
    assert question.title == "Built"
    assert question.to_dict() == {
        "title": "Built",
        "image_src": None,
        "answer_choices": [{"text": "Yes", "is_answer": True}, {"text": "No", "is_answer": False}],
    }


def test_parse_document_reports_malformed_markup():
    with pytest.raises(DocumentParseError):
        parse_document("<div><p>unclosed</div>")


def test_parse_document_keeps_text_nodes_in_order():
    root = parse_document("<div>a<b>b</b>c<i>d<u>e</u></i></div>")
    assert root.tag == "div"
    assert [type(n).__name__ for n in root.children] == ["Text", "Element", "Text", "Element"]
    assert root.text("") == "abcde"
    assert root.child("i").text(" ") == "d e"
    assert root.child("table") is None


@pytest.mark.parametrize("src", ["", "   "])
def test_empty_img_src_fails_as_missing_src(src):
    doc = _doc(
        f"""<p class="question">1. Q</p>
<div class="wp-block-image"><figure><img src="{src}"></figure></div>
<p>A. x</p>"""
    )
    with pytest.raises(extract.ExtractionError) as excinfo:
        extract.extract_from_text(doc)
    assert excinfo.value.expected == "img missing src attribute"
    assert excinfo.value.value == src


def test_non_bold_elements_in_answer_paragraph_are_dropped():
    doc = _doc(
        """<p class="question">1. Title</p>
<p><strong>A. Right</strong><br/><em>B. Emphasised only</em><br/>C. Plain<span>D. Span</span></p>"""
    )
    (question,) = extract.extract_from_text(doc)
    assert question.answer_choices == (
        extract.AnswerChoice("Right", True),
        extract.AnswerChoice("Plain", False),
    )
