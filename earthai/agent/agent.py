from langchain.agents import create_tool_calling_agent, AgentExecutor
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from earthai.models.chat_models import get_llm
from earthai.tools import (
    find_landmark,
    nearby_landmarks,
    create_search_place_tool,
)
from earthai.agent.prompts import SYSTEM_PROMPT


def create_agent():
    """LangChain Agent 생성"""
    llm = get_llm()

    # 1. 모든 도구 등록
    tools = [
        find_landmark,
        nearby_landmarks,
        create_search_place_tool(),
    ]

    # 2. 프롬프트 정의 (현재 지도 위치는 매 요청마다 채워짐)
    prompt = ChatPromptTemplate.from_messages([
        ("system", SYSTEM_PROMPT),
        MessagesPlaceholder(variable_name="chat_history", optional=True),
        ("human", "{input}"),
        MessagesPlaceholder(variable_name="agent_scratchpad"),
    ])

    # 3. Agent 생성 (Function Calling 방식)
    agent = create_tool_calling_agent(llm, tools, prompt)

    # 4. AgentExecutor 생성
    return AgentExecutor(
        agent=agent,
        tools=tools,
        max_iterations=5,
        handle_parsing_errors=True,
    )
