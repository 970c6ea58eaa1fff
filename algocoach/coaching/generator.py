#!/usr/bin/env python3
"""
ScriptGenerator - builds a starter guidance script from problem metadata.

Three templates of increasing depth (basic, comprehensive, advanced) are
picked by difficulty unless one is forced. Topic hints are added for
recognised tags.
"""

from typing import Dict, List, Optional, Sequence

import yaml

from .state import Difficulty, GuidanceScript, GuidanceStep, StepType

TEMPLATE_NAMES = ('basic', 'comprehensive', 'advanced')

DIFFICULTY_TEMPLATES = {
    Difficulty.EASY: 'basic',
    Difficulty.MEDIUM: 'comprehensive',
    Difficulty.HARD: 'advanced',
}


def _step(step_type: StepType, content: str, trigger: Optional[str] = None,
          keywords: Optional[Sequence[str]] = None) -> GuidanceStep:
    return GuidanceStep(
        type=step_type,
        content=content.strip(),
        trigger=trigger,
        keywords=tuple(keywords) if keywords else None,
    )


# =============================================================================
# Templates
# =============================================================================

BASIC_TEMPLATE = [
    _step(StepType.INTRO, """
# {{title}}

Welcome! This is a {{difficulty}} level problem.

Take a moment to read through the problem description and examples carefully.
Understanding the problem thoroughly is the first step to solving it.
"""),
    _step(StepType.PRE_PROMPT, """
Before you start coding, consider:

1. What are the inputs and outputs?
2. Are there any edge cases to handle?
3. What would be a simple approach to solve this?

Start with a solution that works, then optimize if needed.
"""),
    _step(StepType.ON_RUN, """
It looks like there was an error in your code. Check the error message above
for details about what went wrong.

Common issues to check:
- Syntax errors
- Undefined variables
- Type mismatches
""", trigger='stderr.length > 0 && !passed'),
    _step(StepType.AFTER_SUCCESS, """
Excellent work! You've solved the problem!

Take a moment to:
- Review your solution
- Consider the time and space complexity
- Think about whether there are alternative approaches
"""),
]

COMPREHENSIVE_TEMPLATE = [
    _step(StepType.INTRO, """
# {{title}}

Welcome! This is a {{difficulty}} level problem.

This problem will help you practice important algorithmic concepts.
Take your time to understand the problem statement and examples.

**Strategy**: Read carefully, think through the approach, then implement.
"""),
    _step(StepType.PRE_PROMPT, """
Before you start coding, let's break down the problem:

1. **Inputs**: What data are you given?
2. **Outputs**: What should your solution return?
3. **Constraints**: What are the limits? (size, values, time)
4. **Edge cases**: Empty inputs, single elements, large inputs?

**Recommended approach**:
- Start with a brute force solution that works
- Test it with the examples
- Then optimize if needed

Don't worry about perfect code on the first try!
"""),
    _step(StepType.ON_RUN, """
Your code encountered an error. Let's debug:

1. **Read the error message** carefully - it tells you what went wrong
2. **Check the line number** where the error occurred
3. **Common issues**:
   - Syntax errors (missing brackets, bad indentation)
   - Undefined variables or functions
   - Type errors (wrong data types)
   - Index out of bounds

Add print statements to track variable values if you're unsure where the issue is.
""", trigger='stderr.length > 0 && !passed'),
    _step(StepType.ON_RUN, """
You've made {{attempts}} attempts. Keep going! Debugging is a normal part of coding.

**Debugging tips**:
- Check your logic step by step
- Test with simple examples first
- Print intermediate values
- Compare expected vs actual output
""", trigger='!passed && attempts > 1'),
    _step(StepType.ON_RUN, """
Still working on this? That's completely normal for a {{difficulty}} problem!

**Try these strategies**:
1. Go back to the problem description - are you solving the right thing?
2. Test your code with the provided examples manually
3. Break down your solution into smaller functions
4. Use the hint command if you're stuck

Remember: struggling is how you learn.
""", trigger='!passed && attempts > 3'),
    _step(StepType.ON_REQUEST, """
When you're stuck, try:

1. **Trace through an example** by hand to understand the pattern
2. **Simplify**: What would you do with the smallest possible input?
3. **Look for patterns**: Does this remind you of other problems?
4. **Consider data structures**: Would a hash map, set, or array help?

Sometimes stepping away and coming back helps too!
""", keywords=['hint', 'help', 'stuck', 'approach']),
    _step(StepType.AFTER_SUCCESS, """
Fantastic! You solved it after {{attempts}} attempt(s)!

**Reflection**:
- What was your approach?
- What's the time complexity? Space complexity?
- Could you solve it differently?
- What did you learn?

Great job working through this {{difficulty}} problem!
"""),
]

ADVANCED_TEMPLATE = [
    _step(StepType.INTRO, """
# {{title}}

Welcome to this {{difficulty}} level problem!

This is a challenging problem that will test your algorithmic skills.
Don't be discouraged if it takes time - that's expected and valuable!

**Mindset for hard problems**:
- Be patient and systematic
- Break the problem into smaller parts
- It's okay to look for patterns in examples
- Learning happens through struggle
"""),
    _step(StepType.PRE_PROMPT, """
Before coding, let's develop a strategy:

**1. Understand deeply**:
   - What exactly is being asked?
   - What are the inputs, outputs, and constraints?
   - Work through examples manually to see patterns

**2. Identify the problem type**:
   - Does it involve searching? Consider binary search, DFS, BFS
   - Need an optimal solution? Consider dynamic programming, greedy
   - Graph-like relationships? Consider graph algorithms
   - Sequence/substring problems? Consider two pointers, sliding window

**3. Choose an approach**:
   - Start with brute force to verify understanding
   - Identify bottlenecks
   - Apply appropriate patterns or techniques

It's better to have a working brute force solution than no solution!
"""),
    _step(StepType.ON_RUN, """
Error detected. Let's debug systematically:

**Step 1: Understand the error**
- Read the full error message
- Identify the error type (syntax, runtime, logic)
- Note the line number

**Step 2: Isolate the issue**
- Can you reproduce it with a simple test case?
- Add logging to trace execution flow
- Check variable states at key points

**Step 3: Common error patterns**:
- **Off-by-one errors**: Check loop bounds and array indices
- **None values**: Verify variables are initialized
- **Type mismatches**: Ensure operations match data types
- **Infinite loops**: Verify loop exit conditions
""", trigger='stderr.length > 0 && !passed'),
    _step(StepType.ON_RUN, """
{{attempts}} attempts in - you're making progress! This is a {{difficulty}} problem, so persistence is key.

**Debugging strategies for complex problems**:
1. **Divide and conquer**: Test each part of your solution separately
2. **Work backwards**: Start with expected output, trace back to inputs
3. **Compare with examples**: Manually walk through provided test cases
4. **Check assumptions**: Are you certain about input format and constraints?
""", trigger='!passed && attempts > 2'),
    _step(StepType.ON_RUN, """
Still working on this? That shows great persistence!

**When you're deeply stuck**:
1. **Take a break**: Sometimes the solution comes when you step away
2. **Simplify the problem**: Can you solve a smaller version first?
3. **Review fundamentals**: Does this problem use a pattern you've seen?
4. **Use the hint system**: Type `hint` for contextual guidance
5. **Pseudocode first**: Write out steps in plain language before coding
""", trigger='!passed && attempts > 4'),
    _step(StepType.HINT, """
After {{attempts}} attempts, here are some things to consider:

**Strategy check**:
- Have you identified the correct algorithmic pattern?
- Is your approach optimal, or just correct?
- Are you handling all edge cases?

**Common pitfalls in {{difficulty}} problems**:
- Overlooking constraint implications
- Choosing suboptimal data structures
- Missing optimization opportunities

Try explaining your approach out loud - it often reveals gaps in logic!
""", trigger='attempts > 3 && !passed'),
    _step(StepType.ON_REQUEST, """
Here's a structured approach to get unstuck:

**1. Problem clarification**:
   - Reread the problem statement carefully
   - Ensure you understand all constraints
   - Work through examples by hand

**2. Pattern recognition**:
   - What similar problems have you solved?
   - What data structures are commonly used for this type of problem?
   - Is there a well-known algorithm that applies?

**3. Solution development**:
   - Start with a naive solution that works
   - Identify the bottleneck
   - Apply optimization techniques
""", keywords=['hint', 'help', 'stuck', 'approach', 'strategy']),
    _step(StepType.ON_REQUEST, """
Looking to optimize? Here's a systematic approach:

**1. Analyze current complexity**:
   - What's your time complexity? O(n^2)? O(n log n)?
   - What's your space complexity?
   - Which operations are repeated unnecessarily?

**2. Common optimization techniques**:
   - **Use hash maps** to reduce lookup time from O(n) to O(1)
   - **Two pointers** for array problems can reduce nested loops
   - **Dynamic programming** can eliminate redundant calculations
   - **Sort first** if that enables a more efficient algorithm

Ask yourself: "What am I computing repeatedly that I could cache or avoid?"
""", keywords=['optimization', 'optimize', 'faster', 'complexity', 'performance']),
    _step(StepType.AFTER_SUCCESS, """
Outstanding! You conquered this {{difficulty}} problem!

**What you accomplished**:
- Solved after {{attempts}} attempt(s)
- Overcame a challenging algorithmic problem

**Reflection questions**:
1. **Approach**: What was your strategy? What patterns did you use?
2. **Complexity**: Time complexity? Space complexity? Can you prove it?
3. **Alternatives**: Could you solve this differently? Trade-offs?
4. **Similar problems**: What related problems could you solve now?
"""),
]

TEMPLATES: Dict[str, List[GuidanceStep]] = {
    'basic': BASIC_TEMPLATE,
    'comprehensive': COMPREHENSIVE_TEMPLATE,
    'advanced': ADVANCED_TEMPLATE,
}


# =============================================================================
# Topic hints
# =============================================================================

# Topic -> substrings that identify it in a (lower-cased) tag
TOPIC_TAG_PATTERNS = {
    'dynamic-programming': ('dynamic-programming', 'dp'),
    'binary-tree': ('tree', 'binary-tree', 'bst'),
    'hash-table': ('hash',),
    'two-pointers': ('two-pointer',),
    'binary-search': ('binary-search',),
    'stack-queue': ('stack', 'queue'),
    'graph': ('graph', 'bfs', 'dfs', 'breadth-first', 'depth-first'),
}

HASH_STRUCTURES = {
    'typescript': '- Map for key-value pairs\n- Set for unique values',
    'javascript': '- Map for key-value pairs\n- Set for unique values',
    'python': '- dict for key-value pairs\n- set for unique values',
    'java': '- HashMap<K,V> for key-value pairs\n- HashSet<T> for unique values',
}


def detect_topics(tags: Sequence[str]) -> List[str]:
    """Known topics mentioned by the tags, in a fixed order"""
    normalized = [tag.lower() for tag in tags]
    return [
        topic for topic, patterns in TOPIC_TAG_PATTERNS.items()
        if any(pattern in tag for tag in normalized for pattern in patterns)
    ]


def _topic_hint(topic: str, difficulty: Difficulty, language: str) -> str:
    hard = difficulty == Difficulty.HARD

    if topic == 'dynamic-programming':
        closing = ("**Hard DP problems** often have multiple dimensions or complex state "
                   "transitions. Start simple!" if hard else
                   "Start by identifying what information you need to track at each step.")
        return f"""**Dynamic Programming Hint**:

Think about this problem in terms of subproblems:
1. **Define the state**: What does dp[i] represent?
2. **Identify the recurrence relation**: How does dp[i] relate to previous states?
3. **Base cases**: What are the simplest cases you can solve directly?
4. **Build up**: Can you solve from bottom-up or use memoization for top-down?

{closing}"""

    if topic == 'binary-tree':
        return """**Binary Tree Hint**:

Consider these common patterns:
1. **Recursion**: Most tree problems have elegant recursive solutions
   - Base case: What happens at empty/leaf nodes?
   - Recursive case: Process left and right subtrees
2. **Traversal type**: Does order matter?
   - Pre-order, in-order (useful for BSTs), post-order
   - Level-order: Use a queue for BFS
3. **Helper function**: Often useful to pass additional parameters

Think: Can you solve this by breaking it down into left and right subtree subproblems?"""

    if topic == 'hash-table':
        structures = HASH_STRUCTURES.get(language, '- the appropriate hash table data structure')
        return f"""**Hash Table Hint**:

Hash tables excel at trading space for time:
1. **What to store**: Keys? Values? Both? Counts? Indices?
2. **When to check**: Before adding? After? While iterating?
3. **Common patterns**:
   - Lookup in O(1): Check if element exists
   - Count frequency: Map values to counts
   - Complement/pair finding: Check if target - current exists

In {language}, use:
{structures}"""

    if topic == 'two-pointers':
        return """**Two Pointers Hint**:

The two pointers technique is powerful for array/string problems:
1. **Pattern identification**:
   - Sorted array? Consider left/right pointers
   - Sliding window? Consider start/end pointers
   - Fast/slow? For linked lists or cycle detection
2. **When to move which pointer**:
   - Based on comparison? Move the one that doesn't satisfy the condition
   - Based on window size? Move start or end to adjust

Think: How does moving each pointer change your answer?"""

    if topic == 'binary-search':
        closing = ("**Hard problems** might require binary search on the answer space "
                   "rather than indices!" if hard else
                   "Start with: What makes this problem monotonic?")
        return f"""**Binary Search Hint**:

Binary search isn't just for finding elements:
1. **Search space**: What are you searching over? Indices? Values? Answers?
2. **Monotonic property**: What makes one half eliminatable?
3. **Boundary handling**: Which condition moves left? Which moves right?
4. **Final check**: After the loop, verify the left/right position

{closing}"""

    if topic == 'stack-queue':
        return """**Stack/Queue Hint**:

These data structures are perfect for specific patterns:
1. **Stack (LIFO)**: matching/balancing, undoing operations, monotonic stacks
2. **Queue (FIFO)**: level-order traversal, BFS, processing in arrival order
3. **Key questions**:
   - What do you push/enqueue? When?
   - What triggers a pop/dequeue?

Think: Does the order of processing matter for your solution?"""

    if topic == 'graph':
        closing = ("**Complex graphs** might need algorithms like Dijkstra, Topological "
                   "Sort, or Union-Find!" if hard else
                   "Start by choosing BFS or DFS based on what you need to find.")
        return f"""**Graph Hint**:

Graph problems often come down to traversal strategy:
1. **Representation**: Adjacency list? Adjacency matrix? Edge list?
2. **Traversal choice**:
   - **BFS** (queue): Level-by-level, shortest path in unweighted graphs
   - **DFS** (recursion/stack): Explore deeply, backtracking, cycle detection
3. **State tracking**: visited set, distance array, parent map
4. **Edge cases**: Disconnected components? Cycles? Self-loops?

{closing}"""

    raise ValueError(f"Unknown topic: {topic}")


# =============================================================================
# Generator
# =============================================================================

class ScriptGenerator:
    """Generates guidance scripts from problem metadata"""

    def __init__(
        self,
        template: Optional[str] = None,
        language: str = 'python',
        include_topic_hints: bool = True
    ):
        if template is not None and template not in TEMPLATES:
            raise ValueError(
                f"Unknown template '{template}'. Available: {', '.join(TEMPLATE_NAMES)}"
            )
        self.template = template
        self.language = language
        self.include_topic_hints = include_topic_hints

    def select_template(self, difficulty: Difficulty) -> str:
        """Forced template, or the one matching the difficulty"""
        return self.template or DIFFICULTY_TEMPLATES[difficulty]

    def generate(
        self,
        problem_id: str,
        title: str,
        difficulty: str,
        tags: Sequence[str] = ()
    ) -> GuidanceScript:
        """
        Build a complete script for a problem.

        {{title}} and {{difficulty}} are substituted now; {{attempts}} is
        left for the engine to fill in at runtime.
        """
        level = Difficulty(difficulty)
        steps = [
            self._populate(step, title, level)
            for step in TEMPLATES[self.select_template(level)]
        ]

        if self.include_topic_hints:
            threshold = 2 if level == Difficulty.HARD else 3
            for topic in detect_topics(tags):
                steps.append(GuidanceStep(
                    type=StepType.HINT,
                    content=_topic_hint(topic, level, self.language),
                    trigger=f"!passed && attempts >= {threshold}",
                ))

        return GuidanceScript(
            id=problem_id,
            title=title,
            difficulty=level,
            tags=tuple(tags),
            language=self.language,
            steps=tuple(steps),
        )

    def generate_yaml(self, problem_id: str, title: str, difficulty: str,
                      tags: Sequence[str] = ()) -> str:
        return to_yaml(self.generate(problem_id, title, difficulty, tags))

    @staticmethod
    def _populate(step: GuidanceStep, title: str, difficulty: Difficulty) -> GuidanceStep:
        content = step.content.replace('{{title}}', title).replace('{{difficulty}}', difficulty.value)
        return GuidanceStep(type=step.type, content=content,
                            trigger=step.trigger, keywords=step.keywords)


class _BlockStyleDumper(yaml.SafeDumper):
    """Writes multi-line strings as literal blocks"""


def _represent_str(dumper: yaml.SafeDumper, value: str):
    style = '|' if '\n' in value else None
    return dumper.represent_scalar('tag:yaml.org,2002:str', value, style=style)


_BlockStyleDumper.add_representer(str, _represent_str)


def to_yaml(script: GuidanceScript) -> str:
    """Serialise a script as trainer.yaml content"""
    return yaml.dump(
        script.to_dict(),
        Dumper=_BlockStyleDumper,
        sort_keys=False,
        allow_unicode=True,
        width=1000,
    )
