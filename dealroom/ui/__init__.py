"""NiceGUI interface - thin presentation layer over the chat and preview cores.

Responsibilities:
    - Deal and portfolio company chat panels with simulated streaming
    - Conversation list, selection and deletion
    - Company document list with a multi-format preview dialog

Contains no business logic: pages wire the chat service and the preview
resolver to widgets and forward failures to notifications.
"""
