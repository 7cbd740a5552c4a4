from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from prdsmith.artifacts.writers import render_todo_markdown, write_documents
from prdsmith.config import AppConfig
from prdsmith.dispatcher import Dispatcher
from prdsmith.generators import generate_prd, generate_questions, generate_todo, generate_trd
from prdsmith.utils.console import Operator


@dataclass
class QAItem:
    question: str
    choices: List[str]
    answer: str


@dataclass
class InterviewResult:
    idea: str
    history: List[QAItem] = field(default_factory=list)


def _tag(name: str, body: str) -> str:
    return f"<{name}>\n{body}\n</{name}>"


def render_conversation(idea: str, history: List[QAItem]) -> str:
    sections = [_tag("project_idea", idea.strip())]
    if history:
        items = [
            _tag(
                "qa_history_item",
                _tag("previous_question", item.question) + "\n" + _tag("user_answer", item.answer),
            )
            for item in history
        ]
        sections.append(_tag("previous_qa_history", "\n".join(items)))
    return _tag("conversation", "\n".join(sections))


def render_interview(result: InterviewResult) -> str:
    lines = ["# Project idea", "", result.idea.strip(), "", "# Interview"]
    for index, item in enumerate(result.history, start=1):
        lines.extend(["", f"Q{index}. {item.question}", f"A{index}. {item.answer}"])
    return "\n".join(lines) + "\n"


REVIEW_CONFIRM = "Looks good, generate the documents"
REVIEW_EDIT = "Edit an answer"
REVIEW_RESTART = "Start the interview over"
REVIEW_ACTIONS = (REVIEW_CONFIRM, REVIEW_EDIT, REVIEW_RESTART)
REVIEW_BACK = "Back"


def answer_label(index: int, item: QAItem) -> str:
    return f"[{index}] {item.question} -> {item.answer}"


def render_answer_summary(result: InterviewResult) -> str:
    lines = ["", "=== Your answers ==="]
    for index, item in enumerate(result.history, start=1):
        lines.extend([f"[{index}] {item.question}", f"    -> {item.answer}"])
    lines.append("=" * 20)
    return "\n".join(lines)


class DocumentPipeline:
    """Interview, answer review, then PRD -> TRD -> TODO. Files are written only at the very end."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        load_config: Callable[[], AppConfig],
        operator: Operator,
        review_answers: bool = True,
    ) -> None:
        self.dispatcher = dispatcher
        self.load_config = load_config
        self.operator = operator
        self.review_answers = review_answers

    def run(self, idea: str, question_count: Optional[int] = None) -> List[Path]:
        config = self.load_config()
        count = question_count or config.app.default_questions
        interview = self.review(self.interview(idea, count), count)
        documents = self.generate_documents(interview)
        return write_documents(self.load_config().app.output_dir, documents)

    def interview(self, idea: str, count: int) -> InterviewResult:
        result = InterviewResult(idea=idea)
        for index in range(1, count + 1):
            response = generate_questions(
                self.dispatcher,
                self.load_config(),
                render_conversation(idea, result.history),
                count,
            )
            questions = response.get("questions") or []
            if not questions:
                print("[prdsmith] no further questions; moving on to the PRD")
                break
            question = questions[0]
            choices = [str(choice) for choice in question.get("choices", [])]
            answer = self.operator.choose(f"Q{index}/{count}. {question['question']}", choices)
            result.history.append(
                QAItem(question=str(question["question"]), choices=choices, answer=answer)
            )
        return result

    def review(self, result: InterviewResult, count: int) -> InterviewResult:
        """Let the operator confirm, edit single answers, or redo the whole interview."""
        while True:
            print(render_answer_summary(result))
            if not self.review_answers:
                print("[prdsmith] non-interactive input; answers confirmed automatically")
                return result
            action = self.operator.choose("Review your answers. What next?", list(REVIEW_ACTIONS))
            if action == REVIEW_CONFIRM:
                return result
            if action == REVIEW_EDIT:
                self.edit_answers(result)
            elif action == REVIEW_RESTART:
                if self.operator.confirm(
                    "Start over? Every current answer is discarded.", default=False
                ):
                    result = self.interview(result.idea, count)
            else:
                print("Please pick one of the listed options.")

    def edit_answers(self, result: InterviewResult) -> None:
        while True:
            labels = [answer_label(index, item) for index, item in enumerate(result.history, start=1)]
            picked = self.operator.choose("Which answer do you want to change?", [REVIEW_BACK] + labels)
            if picked == REVIEW_BACK:
                return
            if picked not in labels:
                print("Please pick one of the listed answers.")
                continue
            item = result.history[labels.index(picked)]
            item.answer = self.operator.choose(item.question, item.choices)

    def generate_documents(self, interview: InterviewResult) -> Dict[str, str]:
        documents: Dict[str, str] = {}
        documents["prd.md"] = generate_prd(
            self.dispatcher, self.load_config(), render_interview(interview)
        )
        print("[prdsmith] PRD ready")

        config = self.load_config()
        if config.app.skip_trd:
            print("[prdsmith] skipping TRD and TODO")
            return documents
        documents["trd.md"] = generate_trd(self.dispatcher, config, documents["prd.md"])
        print("[prdsmith] TRD ready")

        config = self.load_config()
        if config.app.skip_todo:
            print("[prdsmith] skipping TODO")
            return documents
        todo = generate_todo(self.dispatcher, config, documents["trd.md"])
        documents["todo.md"] = render_todo_markdown(todo)
        print("[prdsmith] TODO ready")
        return documents
