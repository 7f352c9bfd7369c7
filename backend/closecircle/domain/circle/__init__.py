"""Close-circle domain: friend requests and circle membership."""
