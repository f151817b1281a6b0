"""Google reporting connectors"""
