"""Prompt templates for the chat and commit flows.

A PromptSet is built once and handed to the agents, so nothing depends on
module-level template state. Rendering is plain string.Template substitution;
the system prompt embeds a time context so relative dates ("yesterday",
"last week") resolve against the real clock.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from string import Template
from typing import Dict, Iterable, Optional

from agent.types import FileChange

# =========================================================================
# Templates
# =========================================================================

SYSTEM_PROMPT = """You are a Git expert assistant with deep understanding of version control systems.
You have extensive experience with git internals, workflows, and best practices.
You provide accurate, technically sound advice and commands.
Your responses are clear, direct and precise.

Current time context:
- Current time: $current_time
- Today's date: $today
- Yesterday: $yesterday
- Last week start: $last_week_start
- Last month: $last_month

When analyzing queries:
1. Try to use existing command output first if available in the conversation
2. Only request new git commands if the information is not available
3. Be specific about what additional information you need and why
4. Use the current time context for relative time references
5. Always respond in the same language as the user's query"""

GENERATE_COMMANDS_PROMPT = """Analyze the query and determine the appropriate git commands to execute.

Command Types:
1. Query Commands (commandType: "query"):
   - Read-only operations that don't modify the repository
   - Examples: git log, git status, git diff, git show
   - These will be executed directly

2. Modification Commands (commandType: "modify"):
   - Operations that change the repository state
   - Examples: git commit, git reset, git revert, git checkout, git merge
   - These require user confirmation before execution

Arguments are passed to git directly, without a shell. The only supported
substitution is a nested git command such as $$(git describe --tags --abbrev=0).

Return a JSON response in one of these formats:

1. If you can answer using existing information:
{
    "type": "answer",
    "content": "Your detailed answer based on the context"
}

2. If you need to execute query commands:
{
    "type": "execute",
    "commandType": "query",
    "commands": [
        {
            "command": "git",
            "args": ["command", "args"],
            "purpose": "explain why this command is needed"
        }
    ],
    "reason": "Explain why these commands are needed"
}

3. If suggesting modification commands:
{
    "type": "execute",
    "commandType": "modify",
    "commands": [
        {
            "command": "git",
            "args": ["command", "args"],
            "purpose": "explain what this command will modify, in the language of the query",
            "impact": "detailed explanation of the changes this will make, in the language of the query"
        }
    ],
    "reason": "Explain why these modifications are suggested"
}

Query: $query"""

SUMMARIZE_RESULTS_PROMPT = """Answer this Git repository question based on the command results:

Question: $query

Git command execution results:
$results

Instructions:
1. If any command output is empty, mention that no changes/data were found
2. Provide a concise answer that directly addresses the question
3. Answer in the same language as the question
4. Use plain text format, no formatting
5. If the output suggests an error, explain it simply
6. Keep technical details only if directly relevant"""

COMMIT_PROMPT = """Analyze these git changes and generate commit message suggestions.
Return a JSON response in this exact format:
{
    "summary": "A brief summary of the changes in markdown format",
    "suggestions": [
        {
            "message": "type(scope): subject",
            "description": "optional one-line rationale"
        }
    ]
}

Changes:
$changes

Detailed diff:
$diff

Guidelines for commit messages:
1. Use conventional commits format: type(scope): description
2. Available types: feat, fix, docs, style, refactor, test, chore
3. Focus on what changes accomplish, not how
4. No period at the end
5. Use imperative mood ("add" not "added")
6. Generate exactly 3 different suggestions
7. Each suggestion should focus on a different aspect

Guidelines for summary:
1. Brief but comprehensive summary of changes
2. Focus on the overall impact
3. Keep it under 3-4 sentences
4. Include key changes and their purposes
5. Use technical but clear language"""


def _one_month_back(now: datetime) -> datetime:
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    return now.replace(year=year, month=month, day=min(now.day, calendar.monthrange(year, month)[1]))


def time_context(now: Optional[datetime] = None) -> Dict[str, str]:
    now = now or datetime.now()
    return {
        "current_time": now.strftime("%H:%M:%S"),
        "today": now.strftime("%Y-%m-%d"),
        "yesterday": (now - timedelta(days=1)).strftime("%Y-%m-%d"),
        "last_week_start": (now - timedelta(days=7)).strftime("%Y-%m-%d"),
        "last_month": _one_month_back(now).strftime("%Y-%m-%d"),
    }


def format_changes(changes: Iterable[FileChange]) -> str:
    return "".join(
        f"- {c.status}: {c.path} ({c.additions}+/{c.deletions}-)\n" for c in changes
    )


@dataclass(frozen=True)
class PromptSet:
    """The four templates an agent renders. Override any of them at construction."""
    system: str = SYSTEM_PROMPT
    generate_commands: str = GENERATE_COMMANDS_PROMPT
    summarize_results: str = SUMMARIZE_RESULTS_PROMPT
    commit: str = COMMIT_PROMPT

    def render_system(self, now: Optional[datetime] = None) -> str:
        return Template(self.system).safe_substitute(time_context(now))

    def render_generate_commands(self, query: str) -> str:
        return Template(self.generate_commands).safe_substitute(query=query)

    def render_summarize_results(self, query: str, results: str) -> str:
        return Template(self.summarize_results).safe_substitute(query=query, results=results)

    def render_commit(self, changes: Iterable[FileChange], diff: str) -> str:
        return Template(self.commit).safe_substitute(changes=format_changes(changes), diff=diff)
