from rest_framework import serializers
from .models import Opportunity, Application
from .validations import APPLICATION_STATUSES


class OpportunityCreateSerializer(serializers.Serializer):
    """New listings. is_active and is_verified are not accepted here."""
    title = serializers.CharField(max_length=200)
    description = serializers.CharField()
    category = serializers.CharField(max_length=100, required=False, allow_blank=True)
    location_type = serializers.ChoiceField(choices=Opportunity.LOCATION_TYPE_CHOICES, default='in-person')
    location = serializers.CharField(max_length=255, required=False, allow_blank=True)
    deadline = serializers.DateField(required=False, allow_null=True)
    start_date = serializers.DateField(required=False, allow_null=True)
    duration_value = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    duration_type = serializers.ChoiceField(choices=Opportunity.DURATION_TYPE_CHOICES, required=False, allow_blank=True)
    required_program = serializers.CharField(max_length=255, required=False, allow_blank=True)
    preferred_year = serializers.IntegerField(min_value=1, max_value=5, required=False, allow_null=True)
    stipend = serializers.CharField(max_length=100, required=False, allow_blank=True)
    skills = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)

    def validate(self, data):
        if data.get('location_type', 'in-person') != 'remote' and not data.get('location', '').strip():
            raise serializers.ValidationError({'location': ['Location is required unless the opportunity is remote.']})
        return data


class EmployerOpportunityUpdateSerializer(OpportunityCreateSerializer):
    """Owner updates. is_verified is not a field, so it is dropped if sent."""
    title = serializers.CharField(max_length=200, required=False)
    description = serializers.CharField(required=False)
    location_type = serializers.ChoiceField(choices=Opportunity.LOCATION_TYPE_CHOICES, required=False)
    is_active = serializers.BooleanField(required=False)

    def validate(self, data):
        # Location is checked against the merged instance by the service
        return data


class AdminOpportunityUpdateSerializer(EmployerOpportunityUpdateSerializer):
    is_verified = serializers.BooleanField(required=False)


class OpportunitySerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='employer.company_name', read_only=True)
    employer_id = serializers.IntegerField(read_only=True)
    skills = serializers.SerializerMethodField()

    class Meta:
        model = Opportunity
        fields = ['id', 'employer_id', 'company_name', 'title', 'description', 'category',
                  'location_type', 'location', 'deadline', 'start_date', 'duration_value',
                  'duration_type', 'required_program', 'preferred_year', 'stipend',
                  'is_active', 'is_verified', 'skills', 'created_at', 'updated_at']

    def get_skills(self, obj):
        return [{'id': skill.id, 'name': skill.name} for skill in obj.skills.all()]


class ApplicationCreateSerializer(serializers.Serializer):
    opportunity_id = serializers.IntegerField(min_value=1)
    cover_letter = serializers.CharField(required=False, allow_blank=True, default='')


class ReviewerApplicationUpdateSerializer(serializers.Serializer):
    """Employer and admin updates."""
    status = serializers.ChoiceField(choices=APPLICATION_STATUSES)
    feedback = serializers.CharField(required=False, allow_blank=True)


class StudentApplicationUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=APPLICATION_STATUSES)


class ApplicationSerializer(serializers.ModelSerializer):
    student = serializers.SerializerMethodField()
    opportunity_id = serializers.IntegerField(read_only=True)
    company_name = serializers.SerializerMethodField()
    certificate_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Application
        fields = ['id', 'opportunity_id', 'opportunity_title', 'company_name', 'student',
                  'status', 'cover_letter', 'feedback', 'certificate_id',
                  'applied_at', 'updated_at', 'completed_at']

    def get_student(self, obj):
        return {
            'id': obj.student_id,
            'name': obj.student.user.get_full_name(),
            'email': obj.student.user.email,
            'program': obj.student.program,
            'year_of_study': obj.student.year_of_study,
        }

    def get_company_name(self, obj):
        if obj.opportunity is None:
            return None
        return obj.opportunity.employer.company_name
