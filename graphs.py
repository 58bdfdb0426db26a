"""Entry point for LangGraph graphs with absolute imports."""

from moni.premade import graph as react_graph

# Export graphs
react = react_graph
