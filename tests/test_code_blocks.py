"""Tests for fenced code block extraction."""

from switchboard.ai.agents.coding import RESULTS_HEADER, RESULT_FENCE_CLOSE, RESULT_FENCE_OPEN, format_result
from switchboard.ai.tools.code_blocks import CodeBlock, extract_code_blocks
from switchboard.ai.tools.code_executor import CodeExecutionResult
from switchboard.core.types import CodeLanguage


def test_python_block():
    text = 'Here you go:\n```python\nprint("hi")\n```\nDone.'
    assert extract_code_blocks(text) == [CodeBlock(CodeLanguage.PYTHON, 'print("hi")')]


def test_unlabeled_block_defaults_to_python():
    assert extract_code_blocks("```\nx = 1\n```") == [CodeBlock(CodeLanguage.PYTHON, "x = 1")]


def test_javascript_aliases_map_to_node():
    for label in ("javascript", "js", "node", "nodejs", "JavaScript"):
        blocks = extract_code_blocks(f"```{label}\nconsole.log(1)\n```")
        assert blocks == [CodeBlock(CodeLanguage.NODE, "console.log(1)")], label


def test_py_alias():
    assert extract_code_blocks("```py\npass_ = 1\n```")[0].language is CodeLanguage.PYTHON


def test_other_labels_are_silently_ignored():
    text = "```bash\nls -la\n```\n```sql\nSELECT 1;\n```\n```c++\nint x;\n```"
    assert extract_code_blocks(text) == []


def test_empty_blocks_are_ignored():
    assert extract_code_blocks("```python\n   \n```") == []


def test_order_follows_first_occurrence():
    text = (
        "```js\nconsole.log('a')\n```\n"
        "text\n"
        "```python\nprint('b')\n```\n"
        "```\nprint('c')\n```"
    )
    blocks = extract_code_blocks(text)
    assert [b.code for b in blocks] == ["console.log('a')", "print('b')", "print('c')"]
    assert [b.language for b in blocks] == [CodeLanguage.NODE, CodeLanguage.PYTHON, CodeLanguage.PYTHON]


def test_no_fences():
    assert extract_code_blocks("Just prose, no code.") == []


def test_execution_report_is_not_extracted_again():
    result = CodeExecutionResult(stdout="hi\n", stderr="warn\n", exit_code=0, duration_ms=5)
    report = (
        RESULTS_HEADER
        + "**Execution 1** (python):\n"
        + RESULT_FENCE_OPEN
        + "".join(format_result(result))
        + RESULT_FENCE_CLOSE
    )
    assert extract_code_blocks(report) == []
