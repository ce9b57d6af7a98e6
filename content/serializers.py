from rest_framework import serializers

from .models import Reaction, ReactionKind


class ReactSerializer(serializers.Serializer):
    reaction_type = serializers.ChoiceField(
        choices=ReactionKind.choices,
        error_messages={"invalid_choice": "Invalid reaction type"},
    )


class ReactionUserSerializer(serializers.ModelSerializer):
    user_id = serializers.IntegerField(source="user.id")
    user_name = serializers.CharField(source="user.display_name")
    user_role = serializers.CharField(source="user.role")
    user_email = serializers.EmailField(source="user.email")

    class Meta:
        model = Reaction
        fields = ["id", "kind", "created_at", "user_id", "user_name", "user_role", "user_email"]
